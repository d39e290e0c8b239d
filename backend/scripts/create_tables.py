#!/usr/bin/env python3
"""
Command-line script for creating the DynamoDB tables and uploads bucket.

Usage:
    python scripts/create_tables.py [--endpoint-url URL] [--dry-run]

Options:
    --endpoint-url    DynamoDB/S3 endpoint, e.g. http://localhost:8000 for
                      DynamoDB Local
    --skip-bucket     Do not create the uploads bucket
    --dry-run         Show what would be created without creating it
"""

import argparse
import logging
import os
import sys

import boto3
from botocore.exceptions import ClientError

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from utils.tables import TABLE_DEFINITIONS, create_tables, table_name

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def describe(region: str):
    """Print the tables and bucket that would be created."""
    print(f"Region: {region}")
    for logical_name, definition in TABLE_DEFINITIONS.items():
        indexes = [i["IndexName"] for i in definition.get("GlobalSecondaryIndexes", [])]
        print(f"  - {table_name(logical_name)} (indexes: {', '.join(indexes) or 'none'})")
    bucket = os.environ.get("UPLOADS_BUCKET")
    print(f"  - bucket: {bucket or '(UPLOADS_BUCKET not set)'}")


def create_bucket(region: str, endpoint_url: str | None):
    """Create the uploads bucket if UPLOADS_BUCKET is set."""
    bucket = os.environ.get("UPLOADS_BUCKET")
    if not bucket:
        logger.warning("UPLOADS_BUCKET not set, skipping bucket creation")
        return

    s3 = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)
    try:
        kwargs = {"Bucket": bucket}
        if region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        s3.create_bucket(**kwargs)
        logger.info("Created bucket %s", bucket)
    except ClientError as e:
        if e.response["Error"]["Code"] in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            logger.info("Bucket %s already exists", bucket)
            return
        raise


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Create the field operations DynamoDB tables"
    )
    parser.add_argument("--endpoint-url", help="Override the AWS endpoint")
    parser.add_argument(
        "--skip-bucket", action="store_true", help="Do not create the uploads bucket"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be created without creating it",
    )
    args = parser.parse_args()

    region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
    if args.dry_run:
        describe(region)
        return

    dynamodb = boto3.resource(
        "dynamodb", region_name=region, endpoint_url=args.endpoint_url
    )
    try:
        tables = create_tables(dynamodb)
        logger.info("Created %d tables", len(tables))
        if not args.skip_bucket:
            create_bucket(region, args.endpoint_url)
    except ClientError as e:
        logger.error("AWS error: %s", e.response["Error"]["Message"])
        sys.exit(1)


if __name__ == "__main__":
    main()
