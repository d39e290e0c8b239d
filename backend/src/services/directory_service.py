"""Prefix search over user display names, used to find engineers."""

import logging

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from models.user import User, UserSummary
from services.identity_service import Actor, require_actor
from utils.constants import SEARCH_BUCKET, SEARCH_HIGH_SENTINEL, SEARCH_RESULT_LIMIT
from utils.dynamodb_utils import parse_items_from_dynamodb
from utils.search import normalize_name
from utils.tables import SEARCH_NAME_INDEX

logger = logging.getLogger(__name__)


class DirectoryService:
    """Service for searching users by name."""

    def __init__(self, user_table):
        """Initialize the directory service.

        Args:
            user_table: DynamoDB table for users
        """
        self.user_table = user_table

    def search_by_name(
        self,
        prefix: str,
        actor: Actor | None,
        exclude_user_ids: tuple[str, ...] | list[str] = (),
        limit: int = SEARCH_RESULT_LIMIT,
    ) -> list[UserSummary]:
        """Find activated users whose normalized name starts with a prefix.

        The prefix is normalized exactly like names are at write time, then
        used as a range scan [prefix, prefix + sentinel] over the search-name
        index, ascending.

        Args:
            prefix: Raw text typed by the caller
            actor: Calling actor (required)
            exclude_user_ids: Users to leave out, e.g. already assigned
            limit: Maximum number of results

        Returns:
            Up to ``limit`` users ordered by normalized name. An empty or
            fully stripped prefix returns an empty list.
        """
        require_actor(actor, "search users")

        search_prefix = normalize_name(prefix)
        if not search_prefix:
            return []

        excluded = set(exclude_user_ids)
        results: list[UserSummary] = []
        kwargs = {
            "IndexName": SEARCH_NAME_INDEX,
            "KeyConditionExpression": Key("search_bucket").eq(SEARCH_BUCKET)
            & Key("search_name").between(
                search_prefix, search_prefix + SEARCH_HIGH_SENTINEL
            ),
            "ScanIndexForward": True,
        }

        try:
            # Filtering happens client-side, so page until enough rows survive
            while len(results) < limit:
                response = self.user_table.query(**kwargs)
                for item in parse_items_from_dynamodb(response.get("Items", [])):
                    user = User(**item)
                    if not self._is_listed(user, excluded):
                        continue
                    results.append(UserSummary(user_id=user.user_id, name=user.name))
                    if len(results) >= limit:
                        break

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key

        except ClientError as e:
            logger.error("User search for %r failed: %s", search_prefix, e)
            raise Exception(f"Failed to search users: {e}")

        return results

    @staticmethod
    def _is_listed(user: User, excluded: set[str]) -> bool:
        return user.account_activated and user.is_active and user.user_id not in excluded
