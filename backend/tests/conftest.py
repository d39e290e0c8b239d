"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

from models.submission import (
    ComplaintProblemType,
    ComplaintRequest,
    FeedbackRequest,
    ServiceProblemType,
    ServiceReportRequest,
)
from models.user import User
from services.identity_service import Actor
from utils.dynamodb_utils import model_to_item
from utils.search import normalize_name
from utils.tables import create_tables

# Set environment variables before any app imports
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["USERS_TABLE"] = "field-ops-users-test"
os.environ["COMPLAINTS_TABLE"] = "field-ops-complaints-test"
os.environ["SERVICE_REPORTS_TABLE"] = "field-ops-service-reports-test"
os.environ["FEEDBACK_TABLE"] = "field-ops-feedback-test"
os.environ["UPLOADS_BUCKET"] = "field-ops-uploads-test"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"

TEST_JWT_SECRET = "test-jwt-secret-key-for-testing"


@pytest.fixture
def aws_mock():
    """Activate moto for a single test."""
    with mock_aws():
        yield


@pytest.fixture
def tables(aws_mock):
    """Create every DynamoDB table inside the moto mock."""
    dynamodb = boto3.resource("dynamodb", region_name="us-west-2")
    return create_tables(dynamodb)


def make_user(
    user_id: str,
    name: str | None = None,
    is_admin: bool = False,
    account_activated: bool = True,
    is_active: bool = True,
    email: str | None = None,
) -> User:
    """Build a user with its search key derived from the name."""
    search_name = normalize_name(name) or None
    return User(
        user_id=user_id,
        name=name,
        email=email or f"{user_id}@example.com",
        is_admin=is_admin,
        account_activated=account_activated,
        is_active=is_active,
        search_name=search_name,
        search_bucket="USER" if search_name else None,
        created_at="2026-01-20T08:00:00+00:00",
    )


def put_user(table, user: User) -> User:
    """Store a user row directly."""
    table.put_item(Item=model_to_item(user))
    return user


@pytest.fixture
def seeded_users(tables):
    """An admin and two engineers stored in the users table."""
    users_table = tables["users"]
    return {
        "admin": put_user(users_table, make_user("admin_1", "Alice Admin", is_admin=True)),
        "u1": put_user(users_table, make_user("user_1", "Bob Builder")),
        "u2": put_user(users_table, make_user("user_2", "Carol Engineer")),
    }


@pytest.fixture
def admin_actor():
    """An administrator actor."""
    return Actor(user_id="admin_1", is_admin=True)


@pytest.fixture
def u1_actor():
    """A non-admin actor."""
    return Actor(user_id="user_1", is_admin=False)


@pytest.fixture
def u2_actor():
    """A second non-admin actor."""
    return Actor(user_id="user_2", is_admin=False)


@pytest.fixture
def complaint_request():
    """Create a sample complaint request."""
    return ComplaintRequest(
        model_type="XR-200",
        branch_location="Downtown",
        complaint_text="Printer jams on every third page",
        problem_type=ComplaintProblemType.POOR_EXPERIENCE,
        experience_paper_jamming=True,
    )


@pytest.fixture
def service_report_request():
    """Create a sample service report request."""
    return ServiceReportRequest(
        model_types="XR-200, XR-300",
        branch_location="Harbor",
        complaint_text="Fuser unit failing",
        solution="Replaced fuser",
        problem_type=ServiceProblemType.MECHANICAL,
        spare_delay=True,
    )


@pytest.fixture
def feedback_request():
    """Create a sample customer feedback request."""
    return FeedbackRequest(
        branch_location="Downtown",
        model_type="XR-200",
        feedback_details="Quick and friendly service",
        image_ids=["img-1"],
    )


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    mock_table = Mock()
    mock_table.put_item.return_value = {}
    mock_table.get_item.return_value = {}
    mock_table.update_item.return_value = {}
    mock_table.query.return_value = {"Items": []}
    mock_table.scan.return_value = {"Items": []}
    return mock_table


def iso(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> str:
    """UTC ISO timestamp helper."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC).isoformat()
