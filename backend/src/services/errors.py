"""Error taxonomy shared by the submission, feed and user services.

Each error maps to one HTTP status in the API handler.
"""


class ServiceError(Exception):
    """Base class for user-visible service failures."""

    status_code = 500


class Unauthenticated(ServiceError):
    """No resolvable actor where one is required."""

    status_code = 401


class Forbidden(ServiceError):
    """Authenticated actor lacks the required capability."""

    status_code = 403


class NotFound(ServiceError):
    """Target submission or user does not exist."""

    status_code = 404


class InvalidArgument(ServiceError, ValueError):
    """Unrecognized kind, decision or other literal."""

    status_code = 400


class ReviewConflict(ServiceError):
    """Review of a submission that already left the pending state."""

    status_code = 409


class UserConflict(ServiceError):
    """A user with the same email already exists."""

    status_code = 409
