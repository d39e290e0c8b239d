"""User management service."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from models.user import User, UserCreateRequest, UserUpdateRequest
from services.errors import NotFound, UserConflict
from services.identity_service import Actor, require_actor, require_admin
from utils.constants import SEARCH_BUCKET
from utils.dynamodb_utils import (
    build_update_expression,
    model_to_item,
    parse_from_dynamodb,
    scan_all,
)
from utils.search import normalize_name
from utils.tables import EMAIL_INDEX

logger = logging.getLogger(__name__)

# Upper bound on parallel get_item calls for name lookups
MAX_LOOKUP_WORKERS = 10


def search_fields(name: str | None) -> dict[str, str]:
    """Search-index attributes for a name, empty if it normalizes to nothing."""
    search_name = normalize_name(name)
    if not search_name:
        return {}
    return {"search_name": search_name, "search_bucket": SEARCH_BUCKET}


class UserService:
    """Service for reading and administering user records."""

    def __init__(self, table):
        """Initialize the service with a DynamoDB table."""
        self.table = table

    def get_user(self, user_id: str) -> User | None:
        """Get user by ID."""
        try:
            response = self.table.get_item(Key={"user_id": user_id})
        except ClientError as e:
            raise Exception(f"Failed to retrieve user {user_id}: {str(e)}")

        item = response.get("Item")
        if not item:
            return None
        return User(**parse_from_dynamodb(item))

    def get_display_names(self, user_ids: list[str]) -> dict[str, str | None]:
        """Look up display names for a set of users in parallel.

        Args:
            user_ids: IDs to look up; duplicates are fetched once

        Returns:
            Mapping of user ID to name for users that exist. Missing users
            are absent from the mapping.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return {}

        with ThreadPoolExecutor(
            max_workers=min(len(unique_ids), MAX_LOOKUP_WORKERS)
        ) as executor:
            users = list(executor.map(self.get_user, unique_ids))

        return {user.user_id: user.name for user in users if user is not None}

    def get_current_user(self, actor: Actor | None) -> User:
        """Get the caller's own user record."""
        actor = require_actor(actor, "view your profile")
        user = self.get_user(actor.user_id)
        if not user:
            raise NotFound(f"User {actor.user_id} not found")
        return user

    def create_user(self, request: UserCreateRequest, actor: Actor | None) -> User:
        """Create a user on behalf of an admin.

        Raises:
            UserConflict: If a user with the email already exists
        """
        require_admin(actor, "create users")

        response = self.table.query(
            IndexName=EMAIL_INDEX,
            KeyConditionExpression=Key("email").eq(request.email),
            Limit=1,
        )
        if response.get("Items"):
            raise UserConflict("User with this email already exists.")

        user = User(
            user_id=str(uuid.uuid4()),
            name=request.name,
            email=request.email,
            is_admin=request.is_admin,
            created_at=datetime.now(UTC).isoformat(),
            **search_fields(request.name),
        )

        try:
            self.table.put_item(
                Item=model_to_item(user),
                ConditionExpression="attribute_not_exists(user_id)",
            )
        except ClientError as e:
            logger.error("Failed to create user: %s", e)
            raise Exception(f"Failed to create user: {str(e)}")

        logger.info("Admin %s created user %s", actor.user_id, user.user_id)
        return user

    def update_user(
        self, user_id: str, request: UserUpdateRequest, actor: Actor | None
    ) -> None:
        """Change a user's name and role, keeping the search key in sync."""
        require_admin(actor, "edit users")

        fields = search_fields(request.name)
        set_fields = {
            "name": request.name,
            "is_admin": request.is_admin,
            "updated_at": datetime.now(UTC).isoformat(),
            **fields,
        }
        remove_fields = () if fields else ("search_name", "search_bucket")
        self._patch(user_id, set_fields, remove_fields)
        logger.info(
            "Admin %s updated user %s (is_admin=%s)",
            actor.user_id,
            user_id,
            request.is_admin,
        )

    def deactivate_user(self, user_id: str, actor: Actor | None) -> None:
        """Deactivate a user, clearing personal fields and revoking admin.

        The row itself is kept so historical submissions still resolve.
        """
        require_admin(actor, "deactivate users")

        self._patch(
            user_id,
            {
                "is_admin": False,
                "is_active": False,
                "account_activated": False,
                "updated_at": datetime.now(UTC).isoformat(),
            },
            ("name", "email", "search_name", "search_bucket"),
        )
        logger.info("Admin %s deactivated user %s", actor.user_id, user_id)

    def activate_account(self, user_id: str) -> None:
        """Mark an invited account as activated."""
        self._patch(
            user_id,
            {"account_activated": True, "updated_at": datetime.now(UTC).isoformat()},
        )

    def backfill_search_names(self, actor: Actor | None) -> int:
        """Set search_name for named users that lack one.

        Returns:
            Number of users updated
        """
        require_admin(actor, "run user migrations")

        updated = 0
        for item in scan_all(self.table):
            user = User(**item)
            if user.search_name or not user.is_active:
                continue
            fields = search_fields(user.name)
            if not fields:
                continue
            self._patch(user.user_id, fields)
            updated += 1

        logger.info("Search name backfill complete. Updated %d users.", updated)
        return updated

    def _patch(
        self,
        user_id: str,
        set_fields: dict,
        remove_fields: tuple[str, ...] = (),
    ) -> None:
        try:
            self.table.update_item(
                Key={"user_id": user_id},
                ConditionExpression="attribute_exists(user_id)",
                **build_update_expression(set_fields, remove_fields),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise NotFound(f"User {user_id} not found")
            logger.error("Failed to update user %s: %s", user_id, e)
            raise Exception(f"Failed to update user: {str(e)}")
