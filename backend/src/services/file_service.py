"""Blob storage boundary for images attached to submissions."""

import logging
import uuid

from botocore.exceptions import ClientError

from utils.constants import FILE_URL_EXPIRATION_SECONDS

logger = logging.getLogger(__name__)


class FileService:
    """Issues presigned S3 URLs for uploading and viewing attachments."""

    def __init__(self, s3_client, bucket: str | None):
        """Initialize the file service.

        Args:
            s3_client: boto3 S3 client
            bucket: Bucket holding uploaded images
        """
        self.s3_client = s3_client
        self.bucket = bucket

    def issue_upload_url(self) -> dict[str, str]:
        """Create a storage ID and a presigned URL to PUT the file to.

        Returns:
            Dict with storage_id and upload_url
        """
        if not self.bucket:
            raise Exception("Uploads bucket is not configured")

        storage_id = str(uuid.uuid4())
        upload_url = self.s3_client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": storage_id},
            ExpiresIn=FILE_URL_EXPIRATION_SECONDS,
        )
        return {"storage_id": storage_id, "upload_url": upload_url}

    def resolve_url(self, storage_id: str | None) -> str | None:
        """Resolve a storage ID into a presigned download URL."""
        if not storage_id or not self.bucket:
            return None

        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": storage_id},
            ExpiresIn=FILE_URL_EXPIRATION_SECONDS,
        )

    def resolve_urls(self, storage_ids: list[str]) -> list[str]:
        """Resolve several storage IDs, dropping ones that cannot resolve."""
        urls = []
        for storage_id in storage_ids:
            url = self.resolve_url(storage_id)
            if url:
                urls.append(url)
        return urls

    def delete_file(self, storage_id: str) -> None:
        """Delete a stored file.

        Deleting a file that is already gone succeeds after logging a
        warning, so callers can retry cleanup freely.
        """
        if not self.bucket:
            raise Exception("Uploads bucket is not configured")

        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=storage_id)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                logger.warning("File %s not found for deletion", storage_id)
                return
            logger.error("Failed to look up file %s: %s", storage_id, e)
            raise Exception(f"Failed to delete file: {e}")

        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=storage_id)
        except ClientError as e:
            logger.error("Failed to delete file %s: %s", storage_id, e)
            raise Exception(f"Failed to delete file: {e}")
