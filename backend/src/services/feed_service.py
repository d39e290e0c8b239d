"""Role-filtered activity feed across all submission kinds."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from models.feed import FeedItem, FeedResult
from models.submission import (
    Feedback,
    ReviewStatus,
    Submission,
    SubmissionKind,
)
from services.identity_service import Actor
from utils.constants import FEEDBACK_SUBMITTER_NAME, UNKNOWN_SUBMITTER_NAME

logger = logging.getLogger(__name__)


def utc_day_start(now: datetime | None = None) -> datetime:
    """Start of the current UTC day, the window for submissions_today_count."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class FeedService:
    """Builds the merged, role-filtered submission feed.

    Visibility is decided per kind against the store before anything is
    merged, so a non-admin never receives rows it is not entitled to.
    """

    def __init__(self, submission_service, user_service, file_service=None):
        """Initialize the feed service.

        Args:
            submission_service: SubmissionService used for all reads
            user_service: UserService for submitter display names
            file_service: Optional FileService resolving image URLs
        """
        self.submission_service = submission_service
        self.user_service = user_service
        self.file_service = file_service

    def get_feed(self, actor: Actor | None, now: datetime | None = None) -> FeedResult:
        """Get the feed visible to an actor.

        Args:
            actor: Calling actor; None yields an empty logged-out feed
            now: Clock override for the "today" KPI window

        Returns:
            FeedResult with submissions newest first and KPIs computed over
            exactly those submissions
        """
        if actor is None:
            return FeedResult()

        kinds = [SubmissionKind.COMPLAINT, SubmissionKind.SERVICE_REPORT]
        if actor.is_admin:
            kinds.append(SubmissionKind.FEEDBACK)

        # The kinds have no ordering dependency, fetch them concurrently
        with ThreadPoolExecutor(max_workers=len(kinds)) as executor:
            per_kind = list(
                executor.map(lambda kind: self._visible(kind, actor), kinds)
            )

        submitter_ids = [
            submission.submitted_by
            for submissions in per_kind
            for submission in submissions
            if not isinstance(submission, Feedback)
        ]
        names = self.user_service.get_display_names(submitter_ids)

        items = [
            self._enrich(kind, submission, names)
            for kind, submissions in zip(kinds, per_kind)
            for submission in submissions
        ]
        # Stable sort: equal timestamps keep store order
        items.sort(key=lambda item: parse_timestamp(item.created_at), reverse=True)

        day_start = utc_day_start(now)
        pending_count = sum(
            1 for item in items if item.status == ReviewStatus.PENDING.value
        )
        today_count = sum(
            1 for item in items if parse_timestamp(item.created_at) >= day_start
        )

        logger.debug(
            "Feed for %s: %d items (admin=%s)", actor.user_id, len(items), actor.is_admin
        )
        return FeedResult(
            submissions=items,
            is_admin=actor.is_admin,
            pending_count=pending_count,
            submissions_today_count=today_count,
        )

    def get_pending_badge_count(self, actor: Actor | None) -> int:
        """Count pending complaints and service reports for the admin badge.

        Non-admins and anonymous callers always get 0.
        """
        if actor is None or not actor.is_admin:
            return 0

        return sum(
            self.submission_service.count_by_status(kind, ReviewStatus.PENDING)
            for kind in (SubmissionKind.COMPLAINT, SubmissionKind.SERVICE_REPORT)
        )

    def _visible(self, kind: SubmissionKind, actor: Actor) -> list[Submission]:
        """Submissions of one kind the actor may see, in store order."""
        if actor.is_admin:
            return self.submission_service.list_all(kind)

        if not kind.reviewable:
            return []

        own = self.submission_service.list_by_submitter(kind, actor.user_id)
        approved = self.submission_service.list_by_status(kind, ReviewStatus.APPROVED)

        merged = {submission.submission_id: submission for submission in own}
        for submission in approved:
            merged.setdefault(submission.submission_id, submission)
        return sorted(merged.values(), key=lambda submission: submission.created_at)

    def _enrich(
        self,
        kind: SubmissionKind,
        submission: Submission,
        names: dict[str, str | None],
    ) -> FeedItem:
        if isinstance(submission, Feedback):
            submitter_name = FEEDBACK_SUBMITTER_NAME
            status = None
            image_ids = submission.image_ids
        else:
            submitter_name = names.get(submission.submitted_by) or UNKNOWN_SUBMITTER_NAME
            status = submission.status
            image_ids = [submission.image_id] if submission.image_id else []

        image_urls = self.file_service.resolve_urls(image_ids) if self.file_service else []

        return FeedItem(
            submission_id=submission.submission_id,
            kind=kind,
            main_text=submission.main_text,
            submitter_name=submitter_name,
            status=status,
            created_at=submission.created_at,
            image_urls=image_urls,
            submission=submission,
        )
