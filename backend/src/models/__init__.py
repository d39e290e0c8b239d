"""Data models for the field operations backend."""

from .feed import FeedItem, FeedResult, Notification
from .submission import (
    Complaint,
    ComplaintProblemType,
    ComplaintRequest,
    Feedback,
    FeedbackRequest,
    ReviewStatus,
    ServiceProblemType,
    ServiceReport,
    ServiceReportRequest,
    SubmissionKind,
)
from .user import User, UserSummary

__all__ = [
    "Complaint",
    "ComplaintProblemType",
    "ComplaintRequest",
    "Feedback",
    "FeedbackRequest",
    "FeedItem",
    "FeedResult",
    "Notification",
    "ReviewStatus",
    "ServiceProblemType",
    "ServiceReport",
    "ServiceReportRequest",
    "SubmissionKind",
    "User",
    "UserSummary",
]
