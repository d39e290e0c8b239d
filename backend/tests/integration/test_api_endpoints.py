"""Integration tests for API endpoints against moto-backed DynamoDB and S3."""

import os
from datetime import UTC, datetime, timedelta

import boto3
import pytest
from jose import jwt

# Test JWT secret (must match the one in environment)
TEST_JWT_SECRET = os.environ["JWT_SECRET_KEY"]

COMPLAINT_BODY = {
    "model_type": "XR-200",
    "branch_location": "Downtown",
    "complaint_text": "Printer jams on every third page",
    "problem_type": "equipment-fault",
    "fault_frequent_breakdowns": True,
}


def create_test_token(user_id: str) -> str:
    """Create a valid JWT token for testing."""
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": datetime.now(UTC),
        "exp": datetime.now(UTC) + timedelta(hours=1),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def auth(user_id: str) -> dict:
    """Authorization header for a user."""
    return {"Authorization": f"Bearer {create_test_token(user_id)}"}


@pytest.fixture
def app_client(tables, seeded_users):
    """Create FastAPI test client after tables are set up."""
    # Import app after mock is active
    from fastapi.testclient import TestClient

    from handlers.api_handler import app, reset_services

    boto3.client("s3", region_name="us-west-2").create_bucket(
        Bucket=os.environ["UPLOADS_BUCKET"],
        CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
    )
    reset_services()
    yield TestClient(app)
    reset_services()


def feed_ids(client, user_id: str | None) -> set[str]:
    headers = auth(user_id) if user_id else {}
    response = client.get("/api/v1/feed", headers=headers)
    assert response.status_code == 200
    return {item["submission_id"] for item in response.json()["submissions"]}


class TestAPIIntegration:
    """Integration tests for the API endpoints."""

    def test_health_check(self, app_client):
        """Test the health check endpoint."""
        response = app_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_approval_flow(self, app_client):
        """Test a complaint moving from submitter-only to visible to everyone."""
        response = app_client.post(
            "/api/v1/complaints", json=COMPLAINT_BODY, headers=auth("user_1")
        )
        assert response.status_code == 201
        c1 = response.json()["id"]

        assert feed_ids(app_client, "user_1") == {c1}
        assert feed_ids(app_client, "user_2") == set()
        assert app_client.get(
            "/api/v1/feed/pending-count", headers=auth("admin_1")
        ).json() == {"count": 1}
        assert app_client.get(
            "/api/v1/feed/pending-count", headers=auth("user_1")
        ).json() == {"count": 0}

        # A non-admin cannot approve
        response = app_client.post(
            f"/api/v1/submissions/complaint/{c1}/review",
            json={"decision": "approved"},
            headers=auth("user_2"),
        )
        assert response.status_code == 403

        response = app_client.post(
            f"/api/v1/submissions/complaint/{c1}/review",
            json={"decision": "approved"},
            headers=auth("admin_1"),
        )
        assert response.status_code == 200

        assert feed_ids(app_client, "user_2") == {c1}
        item = app_client.get("/api/v1/feed", headers=auth("user_2")).json()[
            "submissions"
        ][0]
        assert item["status"] == "approved"
        assert item["submitter_name"] == "Bob Builder"
        assert item["submission"]["approved_by"] == "admin_1"

        # The submitter is notified once
        notifications = app_client.get(
            "/api/v1/notifications", headers=auth("user_1")
        ).json()
        assert [n["submission_id"] for n in notifications["notifications"]] == [c1]

        response = app_client.post(
            f"/api/v1/submissions/complaint/{c1}/viewed", headers=auth("user_1")
        )
        assert response.status_code == 200
        assert (
            app_client.get("/api/v1/notifications", headers=auth("user_1")).json()[
                "count"
            ]
            == 0
        )

    def test_anonymous_feedback(self, app_client):
        """Test feedback is accepted without login and shown only to admins."""
        response = app_client.post(
            "/api/v1/feedback",
            json={
                "branch_location": "Downtown",
                "model_type": "XR-200",
                "feedback_details": "Technician was quick",
            },
        )
        assert response.status_code == 201
        f1 = response.json()["id"]

        assert feed_ids(app_client, "admin_1") == {f1}
        assert feed_ids(app_client, "user_1") == set()
        assert feed_ids(app_client, None) == set()

        admin_feed = app_client.get("/api/v1/feed", headers=auth("admin_1")).json()
        assert admin_feed["submissions"][0]["submitter_name"] == "Customer"
        assert admin_feed["is_admin"] is True

    def test_review_feedback_is_bad_request(self, app_client):
        """Test feedback has no review state."""
        f1 = app_client.post(
            "/api/v1/feedback",
            json={
                "branch_location": "Downtown",
                "model_type": "XR-200",
                "feedback_details": "Fine",
            },
        ).json()["id"]

        response = app_client.post(
            f"/api/v1/submissions/feedback/{f1}/review",
            json={"decision": "approved"},
            headers=auth("admin_1"),
        )
        assert response.status_code == 400

    def test_submit_requires_login(self, app_client):
        """Test complaints need a logged-in user."""
        response = app_client.post("/api/v1/complaints", json=COMPLAINT_BODY)

        assert response.status_code == 401

    def test_deactivated_admin_loses_access(self, app_client):
        """Test deactivation takes effect on the very next request."""
        created = app_client.post(
            "/api/v1/admin/users",
            json={"name": "Second Admin", "email": "second@example.com", "is_admin": True},
            headers=auth("admin_1"),
        )
        assert created.status_code == 201
        second_id = created.json()["user_id"]

        assert app_client.get(
            "/api/v1/feed/pending-count", headers=auth(second_id)
        ).status_code == 200

        response = app_client.post(
            f"/api/v1/admin/users/{second_id}/deactivate", headers=auth("admin_1")
        )
        assert response.status_code == 200

        response = app_client.post(
            "/api/v1/admin/users/backfill-search-names", headers=auth(second_id)
        )
        assert response.status_code == 401

    def test_user_search(self, app_client):
        """Test the directory search through the API."""
        response = app_client.get(
            "/api/v1/users/search", params={"q": "car"}, headers=auth("user_1")
        )

        assert response.status_code == 200
        assert response.json()["users"] == [
            {"user_id": "user_2", "name": "Carol Engineer"}
        ]

    def test_user_search_requires_login(self, app_client):
        """Test anonymous directory search is rejected."""
        response = app_client.get("/api/v1/users/search", params={"q": "car"})

        assert response.status_code == 401

    def test_edit_solution(self, app_client):
        """Test an admin edits the solution of a pending complaint."""
        c1 = app_client.post(
            "/api/v1/complaints", json=COMPLAINT_BODY, headers=auth("user_1")
        ).json()["id"]

        response = app_client.patch(
            f"/api/v1/submissions/complaint/{c1}/solution",
            json={"solution": "Replaced rollers"},
            headers=auth("admin_1"),
        )
        assert response.status_code == 200

        item = app_client.get("/api/v1/feed", headers=auth("user_1")).json()[
            "submissions"
        ][0]
        assert item["submission"]["solution"] == "Replaced rollers"
        assert item["status"] == "pending"

    def test_upload_url_and_delete(self, app_client):
        """Test issuing an upload URL and deleting the never-uploaded file."""
        response = app_client.post("/api/v1/files/upload-url")
        assert response.status_code == 200
        storage_id = response.json()["storage_id"]

        response = app_client.delete(
            f"/api/v1/files/{storage_id}", headers=auth("admin_1")
        )
        assert response.status_code == 204
