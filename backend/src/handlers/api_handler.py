"""Main FastAPI application handler for Lambda deployment."""

import logging
import os
import time
from datetime import UTC, datetime

import boto3
from botocore.exceptions import ClientError
from fastapi import Depends, FastAPI, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from models.submission import (
    ComplaintRequest,
    FeedbackRequest,
    ReviewRequest,
    ServiceReportRequest,
    SolutionUpdateRequest,
)
from models.user import UserCreateRequest, UserUpdateRequest
from services.auth_service import AuthenticationError, AuthService
from services.directory_service import DirectoryService
from services.errors import ServiceError
from services.feed_service import FeedService
from services.file_service import FileService
from services.identity_service import (
    Actor,
    IdentityService,
    require_actor,
    require_admin,
)
from services.notification_service import NotificationService
from services.submission_service import SubmissionService
from services.user_service import UserService
from utils.tables import table_name

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Field Operations API",
    description="API for field complaints, service reports and customer feedback",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Submission data is per-user and changes on every review
CACHE_CONTROL_PRIVATE = "private, no-store"


@app.middleware("http")
async def log_requests(request, call_next):
    """Log all API requests with timing for CloudWatch monitoring."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    # Log slow requests (>1s) at WARNING level for monitoring
    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


# Lazy-initialized AWS clients and services
# Required for Lambda SnapStart - connections must be re-established after restore
_dynamodb = None
_s3_client = None
_auth_service = None
_identity_service = None
_user_service = None
_submission_service = None
_feed_service = None
_directory_service = None
_notification_service = None
_file_service = None

# Security scheme for bearer token authentication
security = HTTPBearer(auto_error=False)


def reset_services():
    """Reset all lazy-initialized services. Useful for testing.

    Also resets boto3's default session so that subsequent calls to
    boto3.resource() create fresh sessions within the current mock context
    (e.g., moto's mock_aws).
    """
    global _dynamodb, _s3_client, _auth_service, _identity_service
    global _user_service, _submission_service, _feed_service
    global _directory_service, _notification_service, _file_service
    _dynamodb = None
    _s3_client = None
    _auth_service = None
    _identity_service = None
    _user_service = None
    _submission_service = None
    _feed_service = None
    _directory_service = None
    _notification_service = None
    _file_service = None
    boto3.DEFAULT_SESSION = None


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_dynamodb():
    """Get or create DynamoDB resource (lazy init for SnapStart)."""
    global _dynamodb
    if _dynamodb is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        _dynamodb = boto3.resource("dynamodb", region_name=region)
    return _dynamodb


def get_s3_client():
    """Get or create S3 client (lazy init for SnapStart)."""
    global _s3_client
    if _s3_client is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        _s3_client = boto3.client("s3", region_name=region)
    return _s3_client


def get_auth_service():
    """Get or create AuthService (lazy init for SnapStart)."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(jwt_secret=os.environ.get("JWT_SECRET_KEY"))
    return _auth_service


def get_identity_service():
    """Get or create IdentityService (lazy init for SnapStart)."""
    global _identity_service
    if _identity_service is None:
        _identity_service = IdentityService(
            get_dynamodb().Table(table_name("users"))
        )
    return _identity_service


def get_user_service():
    """Get or create UserService (lazy init for SnapStart)."""
    global _user_service
    if _user_service is None:
        _user_service = UserService(get_dynamodb().Table(table_name("users")))
    return _user_service


def get_submission_service():
    """Get or create SubmissionService (lazy init for SnapStart)."""
    global _submission_service
    if _submission_service is None:
        dynamodb = get_dynamodb()
        _submission_service = SubmissionService(
            complaints_table=dynamodb.Table(table_name("complaints")),
            service_reports_table=dynamodb.Table(table_name("service_reports")),
            feedback_table=dynamodb.Table(table_name("feedback")),
            allow_rereview=_env_flag("ALLOW_REREVIEW", True),
        )
    return _submission_service


def get_file_service():
    """Get or create FileService (lazy init for SnapStart)."""
    global _file_service
    if _file_service is None:
        _file_service = FileService(
            get_s3_client(), os.environ.get("UPLOADS_BUCKET")
        )
    return _file_service


def get_feed_service():
    """Get or create FeedService (lazy init for SnapStart)."""
    global _feed_service
    if _feed_service is None:
        _feed_service = FeedService(
            submission_service=get_submission_service(),
            user_service=get_user_service(),
            file_service=get_file_service(),
        )
    return _feed_service


def get_directory_service():
    """Get or create DirectoryService (lazy init for SnapStart)."""
    global _directory_service
    if _directory_service is None:
        _directory_service = DirectoryService(
            get_dynamodb().Table(table_name("users"))
        )
    return _directory_service


def get_notification_service():
    """Get or create NotificationService (lazy init for SnapStart)."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService(get_submission_service())
    return _notification_service


# MARK: - Authentication Dependency


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),  # noqa: B008
) -> str | None:
    """Extract user ID from JWT token if present (optional auth).

    Returns None if no token is provided or the token is invalid; routes that
    need a caller reject the resulting missing actor themselves.
    """
    if not credentials:
        return None

    try:
        return get_auth_service().verify_access_token(credentials.credentials)
    except AuthenticationError:
        return None


def get_actor(
    user_id: str | None = Depends(get_optional_user_id),  # noqa: B008
) -> Actor | None:
    """Resolve the caller into an actor, re-reading the role on every request."""
    return get_identity_service().resolve_actor(user_id)


# MARK: - Health Check


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": "1.0.0",
    }


# MARK: - Submission Endpoints


@app.post("/api/v1/complaints", status_code=status.HTTP_201_CREATED)
def submit_complaint(request: ComplaintRequest, actor: Actor | None = Depends(get_actor)):
    """Submit a complaint for review."""
    complaint_id = get_submission_service().submit_complaint(request, actor)
    return {"id": complaint_id, "status": "pending"}


@app.post("/api/v1/service-reports", status_code=status.HTTP_201_CREATED)
def submit_service_report(
    request: ServiceReportRequest, actor: Actor | None = Depends(get_actor)
):
    """Submit a service report for review."""
    report_id = get_submission_service().submit_service_report(request, actor)
    return {"id": report_id, "status": "pending"}


@app.post("/api/v1/feedback", status_code=status.HTTP_201_CREATED)
def submit_feedback(request: FeedbackRequest):
    """Submit customer feedback. No login required."""
    feedback_id = get_submission_service().submit_feedback(request)
    return {
        "id": feedback_id,
        "status": "received",
        "message": "Thank you for your feedback!",
    }


@app.post("/api/v1/submissions/{kind}/{submission_id}/review")
def review_submission(
    kind: str,
    submission_id: str,
    request: ReviewRequest,
    actor: Actor | None = Depends(get_actor),
):
    """Approve or reject a complaint or service report (admin only)."""
    get_submission_service().review_submission(
        submission_id, kind, request.decision, actor
    )
    return {"id": submission_id, "status": request.decision}


@app.patch("/api/v1/submissions/{kind}/{submission_id}/solution")
def edit_solution(
    kind: str,
    submission_id: str,
    request: SolutionUpdateRequest,
    actor: Actor | None = Depends(get_actor),
):
    """Edit the solution text of a complaint or service report (admin only)."""
    get_submission_service().edit_solution(submission_id, kind, request.solution, actor)
    return {"id": submission_id, "solution": request.solution}


# MARK: - Feed Endpoints


@app.get("/api/v1/feed")
def get_feed(response: Response, actor: Actor | None = Depends(get_actor)):
    """Get the role-filtered submission feed with KPIs."""
    result = get_feed_service().get_feed(actor)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE
    return result.model_dump(mode="json")


@app.get("/api/v1/feed/pending-count")
def get_pending_badge_count(
    response: Response, actor: Actor | None = Depends(get_actor)
):
    """Get the pending-review badge count (0 for non-admins)."""
    count = get_feed_service().get_pending_badge_count(actor)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE
    return {"count": count}


# MARK: - Notification Endpoints


@app.get("/api/v1/notifications")
def get_notifications(response: Response, actor: Actor | None = Depends(get_actor)):
    """Get the caller's approved submissions that are still unread."""
    notifications = get_notification_service().get_unread(actor)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE
    return {
        "notifications": [n.model_dump(mode="json") for n in notifications],
        "count": len(notifications),
    }


@app.post("/api/v1/notifications/read-all")
def mark_all_notifications_read(actor: Actor | None = Depends(get_actor)):
    """Mark all of the caller's notifications as read."""
    marked = get_notification_service().mark_all_read(actor)
    return {"marked_read": marked}


@app.post("/api/v1/submissions/{kind}/{submission_id}/viewed")
def mark_submission_viewed(
    kind: str, submission_id: str, actor: Actor | None = Depends(get_actor)
):
    """Mark one of the caller's approved submissions as viewed."""
    get_notification_service().mark_viewed(submission_id, kind, actor)
    return {"id": submission_id, "viewed": True}


# MARK: - User Endpoints


@app.get("/api/v1/users/search")
def search_users(
    response: Response,
    q: str = Query("", max_length=100, description="Name prefix"),
    exclude: list[str] = Query(default=[], description="User IDs to leave out"),  # noqa: B008
    actor: Actor | None = Depends(get_actor),
):
    """Search activated users by name prefix."""
    users = get_directory_service().search_by_name(q, actor, exclude_user_ids=exclude)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE
    return {"users": [u.model_dump() for u in users]}


@app.get("/api/v1/users/me")
def get_current_user(actor: Actor | None = Depends(get_actor)):
    """Get the caller's own user record."""
    user = get_user_service().get_current_user(actor)
    return user.model_dump(exclude={"search_bucket"})


@app.post("/api/v1/users/me/activate")
def activate_account(actor: Actor | None = Depends(get_actor)):
    """Mark the caller's invited account as activated."""
    actor = require_actor(actor, "activate your account")
    get_user_service().activate_account(actor.user_id)
    return {"message": "Account activated"}


@app.post("/api/v1/admin/users", status_code=status.HTTP_201_CREATED)
def create_user(request: UserCreateRequest, actor: Actor | None = Depends(get_actor)):
    """Create a user (admin only)."""
    user = get_user_service().create_user(request, actor)
    return user.model_dump(exclude={"search_bucket"})


@app.put("/api/v1/admin/users/{user_id}")
def update_user(
    user_id: str, request: UserUpdateRequest, actor: Actor | None = Depends(get_actor)
):
    """Edit a user's name and role (admin only)."""
    get_user_service().update_user(user_id, request, actor)
    return {"message": "User updated successfully"}


@app.post("/api/v1/admin/users/{user_id}/deactivate")
def deactivate_user(user_id: str, actor: Actor | None = Depends(get_actor)):
    """Deactivate a user (admin only)."""
    get_user_service().deactivate_user(user_id, actor)
    return {"message": "User deactivated"}


@app.post("/api/v1/admin/users/backfill-search-names")
def backfill_search_names(actor: Actor | None = Depends(get_actor)):
    """Populate missing search names (admin only, one-off migration)."""
    updated = get_user_service().backfill_search_names(actor)
    return {"updated": updated}


# MARK: - File Endpoints


@app.post("/api/v1/files/upload-url")
def issue_upload_url():
    """Issue a presigned URL for uploading an image attachment."""
    return get_file_service().issue_upload_url()


@app.delete("/api/v1/files/{storage_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(storage_id: str, actor: Actor | None = Depends(get_actor)):
    """Delete an uploaded file (admin only). Deleting a missing file succeeds."""
    require_admin(actor, "delete files")
    get_file_service().delete_file(storage_id)
    return None


# MARK: - Error Handlers


@app.exception_handler(ServiceError)
async def service_error_handler(request, exc: ServiceError):
    """Map service errors to their HTTP status."""
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(ClientError)
async def aws_client_error_handler(request, exc: ClientError):
    """Handle AWS client errors."""
    error_code = exc.response["Error"]["Code"]
    error_message = exc.response["Error"]["Message"]

    if error_code == "ResourceNotFoundException":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Resource not found: {error_message}"},
        )
    else:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"AWS error: {error_message}"},
        )


@app.exception_handler(Exception)
async def unhandled_error_handler(request, exc: Exception):
    """Log unexpected failures and hide their details from the caller."""
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# For local development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
