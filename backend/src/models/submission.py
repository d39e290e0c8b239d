"""Submission data models: complaints, service reports and customer feedback."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from utils.constants import MAX_FEEDBACK_IMAGES


class SubmissionKind(str, Enum):
    """The three submission collections."""

    COMPLAINT = "complaint"
    SERVICE_REPORT = "service_report"
    FEEDBACK = "feedback"

    @property
    def reviewable(self) -> bool:
        """Whether submissions of this kind go through review."""
        return self is not SubmissionKind.FEEDBACK


class ReviewStatus(str, Enum):
    """Review lifecycle of complaints and service reports."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplaintProblemType(str, Enum):
    """Problem classification for customer complaints."""

    EQUIPMENT_FAULT = "equipment-fault"
    POOR_EXPERIENCE = "poor-experience"
    OTHER = "other"


class ServiceProblemType(str, Enum):
    """Problem classification for engineer service reports."""

    ELECTRICAL = "electrical"
    MECHANICAL = "mechanical"
    SOFTWARE = "software"
    SERVICE_DELAY = "service-delay"
    OTHER = "other"


class ReviewFields(BaseModel):
    """Review state shared by complaints and service reports.

    approved_by/approved_at are set iff status is not pending;
    viewed_by_submitter is only meaningful once approved.
    """

    submitted_by: str
    status: ReviewStatus = ReviewStatus.PENDING
    approved_by: str | None = None
    approved_at: str | None = None
    viewed_by_submitter: bool | None = None
    created_at: str

    model_config = ConfigDict(use_enum_values=True)


class ComplaintRequest(BaseModel):
    """Request body for submitting a complaint."""

    model_config = ConfigDict(protected_namespaces=())

    model_type: str = Field(..., min_length=1, max_length=200)
    branch_location: str = Field(..., min_length=1, max_length=200)
    complaint_text: str = Field(..., min_length=1, max_length=5000)
    solution: str = Field(default="", max_length=5000)
    problem_type: ComplaintProblemType
    fault_old_age: bool = False
    fault_frequent_breakdowns: bool = False
    fault_undone_repairs: bool = False
    experience_paper_jamming: bool = False
    experience_noise: bool = False
    experience_freezing: bool = False
    experience_dust: bool = False
    experience_buttons_sticking: bool = False
    other_problem_details: str | None = Field(None, max_length=2000)
    image_id: str | None = None


class Complaint(ComplaintRequest, ReviewFields):
    """Stored complaint record."""

    complaint_id: str

    model_config = ConfigDict(use_enum_values=True, protected_namespaces=())

    @property
    def submission_id(self) -> str:
        return self.complaint_id

    @property
    def main_text(self) -> str:
        return self.complaint_text


class ServiceReportRequest(BaseModel):
    """Request body for submitting a service report."""

    model_config = ConfigDict(protected_namespaces=())

    model_types: str = Field(..., min_length=1, max_length=200)
    branch_location: str = Field(..., min_length=1, max_length=200)
    complaint_text: str = Field(..., min_length=1, max_length=5000)
    solution: str = Field(default="", max_length=5000)
    problem_type: ServiceProblemType
    backoffice_access: bool = False
    spare_delay: bool = False
    delayed_reporting: bool = False
    communication_barrier: bool = False
    other_text: str | None = Field(None, max_length=2000)
    image_id: str | None = None


class ServiceReport(ServiceReportRequest, ReviewFields):
    """Stored service report record."""

    report_id: str

    model_config = ConfigDict(use_enum_values=True, protected_namespaces=())

    @property
    def submission_id(self) -> str:
        return self.report_id

    @property
    def main_text(self) -> str:
        return self.complaint_text


class FeedbackRequest(BaseModel):
    """Request body for customer feedback."""

    model_config = ConfigDict(protected_namespaces=())

    branch_location: str = Field(..., min_length=1, max_length=200)
    model_type: str = Field(..., min_length=1, max_length=200)
    feedback_details: str = Field(..., min_length=1, max_length=5000)
    image_ids: list[str] = Field(default_factory=list, max_length=MAX_FEEDBACK_IMAGES)


class Feedback(FeedbackRequest):
    """Stored feedback record. Feedback has no submitter and no review state."""

    feedback_id: str
    created_at: str

    @property
    def submission_id(self) -> str:
        return self.feedback_id

    @property
    def main_text(self) -> str:
        return self.feedback_details


Submission = Complaint | ServiceReport | Feedback

# Per-kind model class and primary key attribute
SUBMISSION_MODELS: dict[SubmissionKind, type[BaseModel]] = {
    SubmissionKind.COMPLAINT: Complaint,
    SubmissionKind.SERVICE_REPORT: ServiceReport,
    SubmissionKind.FEEDBACK: Feedback,
}

SUBMISSION_KEYS: dict[SubmissionKind, str] = {
    SubmissionKind.COMPLAINT: "complaint_id",
    SubmissionKind.SERVICE_REPORT: "report_id",
    SubmissionKind.FEEDBACK: "feedback_id",
}


class ReviewRequest(BaseModel):
    """Request body for an admin review decision."""

    decision: str = Field(..., description="approved or rejected")


class SolutionUpdateRequest(BaseModel):
    """Request body for editing the solution text."""

    solution: str = Field(..., max_length=5000)
