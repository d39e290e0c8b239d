"""Resolve the calling actor and its admin capability."""

import logging
from dataclasses import dataclass

from botocore.exceptions import ClientError

from models.user import User
from services.errors import Forbidden, Unauthenticated
from utils.dynamodb_utils import parse_from_dynamodb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The identity performing an operation."""

    user_id: str
    is_admin: bool


class IdentityService:
    """Resolves user IDs from verified tokens into actors.

    The admin flag is read from the user row on every call so that a role
    change or deactivation takes effect on the caller's next request.
    """

    def __init__(self, user_table):
        """Initialize the identity service.

        Args:
            user_table: DynamoDB table for users
        """
        self.user_table = user_table

    def resolve_actor(self, user_id: str | None) -> Actor | None:
        """Resolve a user ID into an actor.

        Args:
            user_id: ID from a verified token, or None when no token was sent

        Returns:
            Actor, or None for anonymous callers and unknown or
            deactivated users
        """
        if not user_id:
            return None

        try:
            response = self.user_table.get_item(Key={"user_id": user_id})
        except ClientError as e:
            logger.error("Failed to resolve actor %s: %s", user_id, e)
            raise Exception(f"Failed to resolve actor: {e}")

        item = response.get("Item")
        if not item:
            logger.info("Token subject %s has no user record", user_id)
            return None

        user = User(**parse_from_dynamodb(item))
        if not user.is_active:
            logger.info("Token subject %s is deactivated", user_id)
            return None

        return Actor(user_id=user.user_id, is_admin=user.is_admin)


def require_actor(actor: Actor | None, action: str) -> Actor:
    """Fail closed when an operation needs an authenticated caller.

    Raises:
        Unauthenticated: If actor is None
    """
    if actor is None:
        logger.warning("Unauthenticated caller attempted to %s", action)
        raise Unauthenticated(f"You must be logged in to {action}.")
    return actor


def require_admin(actor: Actor | None, action: str) -> Actor:
    """Fail closed when an operation needs an administrator.

    Raises:
        Unauthenticated: If actor is None
        Forbidden: If the actor is not an admin
    """
    actor = require_actor(actor, action)
    if not actor.is_admin:
        logger.warning("Non-admin %s attempted to %s", actor.user_id, action)
        raise Forbidden(f"You are not authorized to {action}.")
    return actor
