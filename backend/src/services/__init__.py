"""Services for the field operations backend."""

from .directory_service import DirectoryService
from .feed_service import FeedService
from .file_service import FileService
from .identity_service import Actor, IdentityService
from .notification_service import NotificationService
from .submission_service import SubmissionService
from .user_service import UserService

__all__ = [
    "Actor",
    "DirectoryService",
    "FeedService",
    "FileService",
    "IdentityService",
    "NotificationService",
    "SubmissionService",
    "UserService",
]
