"""Read/unread state of approved submissions for their submitters."""

import logging

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from models.feed import Notification
from models.submission import SUBMISSION_KEYS, ReviewStatus, SubmissionKind
from services.errors import Forbidden, NotFound
from services.feed_service import parse_timestamp
from services.identity_service import Actor, require_actor
from services.submission_service import parse_kind
from utils.dynamodb_utils import build_update_expression, query_all
from utils.tables import SUBMITTED_BY_INDEX

logger = logging.getLogger(__name__)

REVIEWABLE_KINDS = (SubmissionKind.COMPLAINT, SubmissionKind.SERVICE_REPORT)


class NotificationService:
    """Tracks which approved submissions a submitter has seen.

    Approval sets viewed_by_submitter to false; this service is the only
    place that flips it back to true.
    """

    def __init__(self, submission_service):
        """Initialize the notification service.

        Args:
            submission_service: SubmissionService owning the tables
        """
        self.submission_service = submission_service

    def get_unread(self, actor: Actor | None) -> list[Notification]:
        """Approved submissions of the actor not yet viewed, newest first."""
        if actor is None:
            return []

        notifications = []
        for kind in REVIEWABLE_KINDS:
            key = SUBMISSION_KEYS[kind]
            for item in self._unread_items(kind, actor.user_id):
                notifications.append(
                    Notification(
                        submission_id=item[key],
                        kind=kind,
                        text=item.get("complaint_text", ""),
                        created_at=item["created_at"],
                    )
                )

        notifications.sort(key=lambda n: parse_timestamp(n.created_at), reverse=True)
        return notifications

    def mark_viewed(
        self, submission_id: str, kind: str | SubmissionKind, actor: Actor | None
    ) -> None:
        """Mark one of the actor's approved submissions as viewed.

        Raises:
            NotFound: If the submission does not exist
            Forbidden: If the actor did not submit it
        """
        actor = require_actor(actor, "update notifications")
        kind = parse_kind(kind, reviewable=True)

        submission = self.submission_service.get_submission(submission_id, kind)
        if submission is None:
            raise NotFound(f"{kind.value} {submission_id} not found")
        if submission.submitted_by != actor.user_id:
            raise Forbidden("Only the submitter can mark a submission as viewed.")
        if submission.status != ReviewStatus.APPROVED:
            return

        self._mark(kind, submission_id)

    def mark_all_read(self, actor: Actor | None) -> int:
        """Mark every unread approved submission of the actor as viewed.

        Returns:
            Number of submissions marked
        """
        if actor is None:
            return 0

        marked = 0
        for kind in REVIEWABLE_KINDS:
            key = SUBMISSION_KEYS[kind]
            for item in self._unread_items(kind, actor.user_id):
                self._mark(kind, item[key])
                marked += 1

        logger.info("Marked %d notifications read for %s", marked, actor.user_id)
        return marked

    def _unread_items(self, kind: SubmissionKind, user_id: str) -> list[dict]:
        table = self.submission_service.tables[kind]
        try:
            return query_all(
                table,
                IndexName=SUBMITTED_BY_INDEX,
                KeyConditionExpression=Key("submitted_by").eq(user_id),
                FilterExpression=Attr("status").eq(ReviewStatus.APPROVED.value)
                & Attr("viewed_by_submitter").eq(False),
            )
        except ClientError as e:
            logger.error("Failed to load unread %s for %s: %s", kind.value, user_id, e)
            raise Exception(f"Failed to load notifications: {e}")

    def _mark(self, kind: SubmissionKind, submission_id: str) -> None:
        key = SUBMISSION_KEYS[kind]
        try:
            self.submission_service.tables[kind].update_item(
                Key={key: submission_id},
                ConditionExpression=f"attribute_exists({key})",
                **build_update_expression({"viewed_by_submitter": True}),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise NotFound(f"{kind.value} {submission_id} not found")
            logger.error("Failed to mark %s %s viewed: %s", kind.value, submission_id, e)
            raise Exception(f"Failed to update notification: {e}")
