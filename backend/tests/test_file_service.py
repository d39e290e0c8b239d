"""Tests for FileService."""

from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError

from services.file_service import FileService

BUCKET = "field-ops-uploads-test"


@pytest.fixture
def s3_client(aws_mock):
    """S3 client with the uploads bucket created."""
    client = boto3.client("s3", region_name="us-west-2")
    client.create_bucket(
        Bucket=BUCKET,
        CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
    )
    return client


@pytest.fixture
def file_service(s3_client):
    """FileService over the moto bucket."""
    return FileService(s3_client, BUCKET)


class TestFileService:
    """Test cases for FileService."""

    def test_issue_upload_url(self, file_service):
        """Test an upload URL is issued for a fresh storage ID."""
        result = file_service.issue_upload_url()

        assert result["storage_id"]
        assert result["storage_id"] in result["upload_url"]
        assert result["upload_url"].startswith("https://")

    def test_issue_upload_url_unique(self, file_service):
        """Test every upload gets its own storage ID."""
        first = file_service.issue_upload_url()["storage_id"]
        second = file_service.issue_upload_url()["storage_id"]

        assert first != second

    def test_resolve_url(self, file_service):
        """Test resolving a storage ID into a download URL."""
        url = file_service.resolve_url("img-1")

        assert "img-1" in url
        assert BUCKET in url

    def test_resolve_url_empty(self, file_service):
        """Test an empty reference resolves to None."""
        assert file_service.resolve_url("") is None
        assert file_service.resolve_url(None) is None

    def test_resolve_url_without_bucket(self):
        """Test resolution is skipped when no bucket is configured."""
        assert FileService(Mock(), None).resolve_url("img-1") is None

    def test_resolve_urls_skips_empty(self, file_service):
        """Test resolving several IDs drops empty ones."""
        urls = file_service.resolve_urls(["a", "", "b"])

        assert len(urls) == 2

    def test_delete_file(self, file_service, s3_client):
        """Test deleting an existing object."""
        s3_client.put_object(Bucket=BUCKET, Key="img-1", Body=b"data")

        file_service.delete_file("img-1")

        listed = s3_client.list_objects_v2(Bucket=BUCKET)
        assert listed.get("KeyCount", 0) == 0

    def test_delete_missing_file_succeeds(self, file_service):
        """Test deleting an absent object is not an error."""
        file_service.delete_file("never-uploaded")

    def test_delete_file_error(self):
        """Test unexpected S3 errors propagate."""
        client = Mock()
        client.head_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "HeadObject"
        )

        with pytest.raises(Exception, match="Failed to delete file"):
            FileService(client, BUCKET).delete_file("img-1")
