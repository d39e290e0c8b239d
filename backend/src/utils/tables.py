"""DynamoDB table definitions for the field operations backend.

Used by the local setup script and by the moto-backed tests so that the key
schema and GSIs the services query against live in one place.
"""

import logging
import os

logger = logging.getLogger(__name__)

# Logical table name -> (environment variable, default physical name)
TABLE_ENV = {
    "users": ("USERS_TABLE", "field-ops-users-dev"),
    "complaints": ("COMPLAINTS_TABLE", "field-ops-complaints-dev"),
    "service_reports": ("SERVICE_REPORTS_TABLE", "field-ops-service-reports-dev"),
    "feedback": ("FEEDBACK_TABLE", "field-ops-feedback-dev"),
}

STATUS_INDEX = "StatusIndex"
SUBMITTED_BY_INDEX = "SubmittedByIndex"
EMAIL_INDEX = "EmailIndex"
SEARCH_NAME_INDEX = "SearchNameIndex"


def table_name(logical_name: str) -> str:
    """Resolve the physical table name for a logical table."""
    env_var, default = TABLE_ENV[logical_name]
    return os.environ.get(env_var, default)


def _gsi(name: str, hash_key: str, range_key: str | None = None) -> dict:
    key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return {
        "IndexName": name,
        "KeySchema": key_schema,
        "Projection": {"ProjectionType": "ALL"},
    }


def _submission_table(key: str) -> dict:
    """Definition shared by the complaints and service report tables."""
    return {
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": key, "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "S"},
            {"AttributeName": "submitted_by", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _gsi(STATUS_INDEX, "status", "created_at"),
            _gsi(SUBMITTED_BY_INDEX, "submitted_by", "created_at"),
        ],
    }


TABLE_DEFINITIONS = {
    "users": {
        "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
            {"AttributeName": "search_bucket", "AttributeType": "S"},
            {"AttributeName": "search_name", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _gsi(EMAIL_INDEX, "email"),
            _gsi(SEARCH_NAME_INDEX, "search_bucket", "search_name"),
        ],
    },
    "complaints": _submission_table("complaint_id"),
    "service_reports": _submission_table("report_id"),
    "feedback": {
        "KeySchema": [{"AttributeName": "feedback_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "feedback_id", "AttributeType": "S"},
        ],
    },
}


def create_tables(dynamodb) -> dict:
    """Create every table on the given DynamoDB resource.

    Args:
        dynamodb: boto3 DynamoDB service resource

    Returns:
        Mapping of logical table name to the created Table resource
    """
    tables = {}
    for logical_name, definition in TABLE_DEFINITIONS.items():
        name = table_name(logical_name)
        table = dynamodb.create_table(
            TableName=name, BillingMode="PAY_PER_REQUEST", **definition
        )
        table.wait_until_exists()
        logger.info("Created table %s", name)
        tables[logical_name] = table
    return tables
