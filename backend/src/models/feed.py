"""Activity feed and notification models."""

from pydantic import BaseModel, ConfigDict, Field

from models.submission import Complaint, Feedback, ServiceReport, SubmissionKind


class FeedItem(BaseModel):
    """Kind-agnostic projection of a submission for the activity feed.

    The kind-specific fields stay on ``submission``; everything the feed
    sorts, filters or counts on is lifted to the top level.
    """

    submission_id: str
    kind: SubmissionKind
    main_text: str
    submitter_name: str
    status: str | None = Field(None, description="None for feedback")
    created_at: str
    image_urls: list[str] = Field(default_factory=list)
    submission: Complaint | ServiceReport | Feedback

    model_config = ConfigDict(use_enum_values=True)


class FeedResult(BaseModel):
    """Role-filtered feed with summary KPIs."""

    submissions: list[FeedItem] = Field(default_factory=list)
    is_admin: bool = False
    pending_count: int = 0
    submissions_today_count: int = 0


class Notification(BaseModel):
    """An approved submission the submitter has not viewed yet."""

    submission_id: str
    kind: SubmissionKind
    text: str
    created_at: str

    model_config = ConfigDict(use_enum_values=True)
