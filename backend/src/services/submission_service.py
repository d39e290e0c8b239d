"""Submission store and review state machine.

Complaints and service reports are created pending and move once to
approved or rejected; feedback has no review state. This service is the
only writer of status transitions.
"""

import logging
import uuid
from datetime import UTC, datetime

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from models.submission import (
    SUBMISSION_KEYS,
    SUBMISSION_MODELS,
    Complaint,
    ComplaintRequest,
    Feedback,
    FeedbackRequest,
    ReviewStatus,
    ServiceReport,
    ServiceReportRequest,
    Submission,
    SubmissionKind,
)
from services.errors import InvalidArgument, NotFound, ReviewConflict
from services.identity_service import Actor, require_actor, require_admin
from utils.dynamodb_utils import (
    build_update_expression,
    count_all,
    model_to_item,
    parse_from_dynamodb,
    query_all,
    scan_all,
)
from utils.tables import STATUS_INDEX, SUBMITTED_BY_INDEX

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = (ReviewStatus.APPROVED, ReviewStatus.REJECTED)


def parse_kind(value: str | SubmissionKind, reviewable: bool = False) -> SubmissionKind:
    """Parse a submission kind literal.

    Args:
        value: Kind literal from the caller
        reviewable: Reject feedback, which has no review state

    Raises:
        InvalidArgument: For unknown kinds, or feedback when reviewable is set
    """
    try:
        kind = SubmissionKind(value)
    except ValueError:
        raise InvalidArgument(f"Unsupported submission type: {value}")
    if reviewable and not kind.reviewable:
        raise InvalidArgument(f"Unsupported submission type: {kind.value}")
    return kind


def parse_decision(value: str | ReviewStatus) -> ReviewStatus:
    """Parse a review decision, which must be a terminal status."""
    try:
        decision = ReviewStatus(value)
    except ValueError:
        raise InvalidArgument(f"Unsupported review decision: {value}")
    if decision not in REVIEW_DECISIONS:
        raise InvalidArgument(f"Unsupported review decision: {decision.value}")
    return decision


class SubmissionService:
    """Service for creating, reviewing and reading submissions."""

    def __init__(
        self,
        complaints_table,
        service_reports_table,
        feedback_table,
        allow_rereview: bool = True,
    ):
        """Initialize the submission service.

        Args:
            complaints_table: DynamoDB table for complaints
            service_reports_table: DynamoDB table for service reports
            feedback_table: DynamoDB table for feedback
            allow_rereview: Whether an already approved or rejected
                submission may be reviewed again (overwriting reviewer and
                timestamp)
        """
        self.tables = {
            SubmissionKind.COMPLAINT: complaints_table,
            SubmissionKind.SERVICE_REPORT: service_reports_table,
            SubmissionKind.FEEDBACK: feedback_table,
        }
        self.allow_rereview = allow_rereview

    # ============================================
    # Submission
    # ============================================

    def submit_complaint(self, request: ComplaintRequest, actor: Actor | None) -> str:
        """Submit a complaint as the calling actor.

        Returns:
            ID of the new complaint
        """
        actor = require_actor(actor, "submit a complaint")
        complaint = Complaint(
            complaint_id=str(uuid.uuid4()),
            submitted_by=actor.user_id,
            status=ReviewStatus.PENDING,
            created_at=datetime.now(UTC).isoformat(),
            **request.model_dump(),
        )
        self._insert(SubmissionKind.COMPLAINT, complaint)
        return complaint.complaint_id

    def submit_service_report(
        self, request: ServiceReportRequest, actor: Actor | None
    ) -> str:
        """Submit a service report as the calling actor.

        Returns:
            ID of the new service report
        """
        actor = require_actor(actor, "submit a report")
        report = ServiceReport(
            report_id=str(uuid.uuid4()),
            submitted_by=actor.user_id,
            status=ReviewStatus.PENDING,
            created_at=datetime.now(UTC).isoformat(),
            **request.model_dump(),
        )
        self._insert(SubmissionKind.SERVICE_REPORT, report)
        return report.report_id

    def submit_feedback(self, request: FeedbackRequest) -> str:
        """Store anonymous customer feedback.

        Returns:
            ID of the new feedback
        """
        feedback = Feedback(
            feedback_id=str(uuid.uuid4()),
            created_at=datetime.now(UTC).isoformat(),
            **request.model_dump(),
        )
        self._insert(SubmissionKind.FEEDBACK, feedback)
        return feedback.feedback_id

    def _insert(self, kind: SubmissionKind, submission: Submission) -> None:
        key = SUBMISSION_KEYS[kind]
        try:
            self.tables[kind].put_item(
                Item=model_to_item(submission),
                ConditionExpression=f"attribute_not_exists({key})",
            )
        except ClientError as e:
            logger.error("Failed to submit %s: %s", kind.value, e)
            raise Exception(f"Failed to submit {kind.value}: {e}")
        logger.info("Created %s %s", kind.value, submission.submission_id)

    # ============================================
    # Review
    # ============================================

    def review_submission(
        self,
        submission_id: str,
        kind: str | SubmissionKind,
        decision: str | ReviewStatus,
        actor: Actor | None,
    ) -> None:
        """Approve or reject a complaint or service report.

        Stamps the reviewer and review time. Approval additionally marks the
        submission unread for its submitter; rejection leaves that flag alone.

        Raises:
            Unauthenticated: If there is no actor
            Forbidden: If the actor is not an admin
            InvalidArgument: For feedback, unknown kinds or decisions
            NotFound: If the submission does not exist
            ReviewConflict: If re-review is disabled and the submission is
                no longer pending
        """
        actor = require_admin(actor, "review submissions")
        kind = parse_kind(kind, reviewable=True)
        decision = parse_decision(decision)

        current = self.get_submission(submission_id, kind)
        if current is None:
            raise NotFound(f"{kind.value} {submission_id} not found")
        if not self.allow_rereview and current.status != ReviewStatus.PENDING:
            raise ReviewConflict(
                f"{kind.value} {submission_id} has already been {current.status}"
            )

        set_fields = {
            "status": decision.value,
            "approved_by": actor.user_id,
            "approved_at": datetime.now(UTC).isoformat(),
        }
        if decision is ReviewStatus.APPROVED:
            set_fields["viewed_by_submitter"] = False

        update = build_update_expression(set_fields)
        key = SUBMISSION_KEYS[kind]
        condition = f"attribute_exists({key})"
        if not self.allow_rereview:
            # Two admins racing on the same pending row: only one may win
            condition += " AND #current_status = :pending"
            update["ExpressionAttributeNames"]["#current_status"] = "status"
            update["ExpressionAttributeValues"][":pending"] = ReviewStatus.PENDING.value

        try:
            self.tables[kind].update_item(
                Key={key: submission_id}, ConditionExpression=condition, **update
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                if self.allow_rereview:
                    raise NotFound(f"{kind.value} {submission_id} not found")
                raise ReviewConflict(
                    f"{kind.value} {submission_id} has already been reviewed"
                )
            logger.error("Failed to review %s %s: %s", kind.value, submission_id, e)
            raise Exception(f"Failed to review {kind.value}: {e}")

        logger.info(
            "%s %s has been %s by %s",
            kind.value,
            submission_id,
            decision.value,
            actor.user_id,
        )

    def edit_solution(
        self,
        submission_id: str,
        kind: str | SubmissionKind,
        solution: str,
        actor: Actor | None,
    ) -> None:
        """Replace the solution text of a complaint or service report.

        Touches nothing but the solution field, whatever the review status.
        """
        actor = require_admin(actor, "edit solutions")
        kind = parse_kind(kind, reviewable=True)
        key = SUBMISSION_KEYS[kind]

        try:
            self.tables[kind].update_item(
                Key={key: submission_id},
                ConditionExpression=f"attribute_exists({key})",
                **build_update_expression({"solution": solution}),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise NotFound(f"{kind.value} {submission_id} not found")
            logger.error(
                "Failed to edit solution of %s %s: %s", kind.value, submission_id, e
            )
            raise Exception(f"Failed to edit solution: {e}")

        logger.info(
            "Solution of %s %s edited by %s", kind.value, submission_id, actor.user_id
        )

    # ============================================
    # Reads
    # ============================================

    def get_submission(
        self, submission_id: str, kind: str | SubmissionKind
    ) -> Submission | None:
        """Get a single submission by kind and ID."""
        kind = parse_kind(kind)
        try:
            response = self.tables[kind].get_item(
                Key={SUBMISSION_KEYS[kind]: submission_id}
            )
        except ClientError as e:
            logger.error("Failed to get %s %s: %s", kind.value, submission_id, e)
            raise Exception(f"Failed to get {kind.value}: {e}")

        item = response.get("Item")
        if not item:
            return None
        return self._to_model(kind, parse_from_dynamodb(item))

    def list_all(self, kind: SubmissionKind) -> list[Submission]:
        """Collect every submission of a kind, in insertion order."""
        try:
            items = scan_all(self.tables[kind])
        except ClientError as e:
            logger.error("Failed to list %s submissions: %s", kind.value, e)
            raise Exception(f"Failed to list {kind.value} submissions: {e}")
        return self._to_models(kind, items)

    def list_by_submitter(self, kind: SubmissionKind, user_id: str) -> list[Submission]:
        """Submissions of a kind created by one user."""
        return self._query(
            kind,
            IndexName=SUBMITTED_BY_INDEX,
            KeyConditionExpression=Key("submitted_by").eq(user_id),
        )

    def list_by_status(
        self, kind: SubmissionKind, status: ReviewStatus
    ) -> list[Submission]:
        """Submissions of a kind currently in one review status."""
        return self._query(
            kind,
            IndexName=STATUS_INDEX,
            KeyConditionExpression=Key("status").eq(status.value),
        )

    def count_by_status(self, kind: SubmissionKind, status: ReviewStatus) -> int:
        """Count submissions of a kind in one review status without reading them."""
        try:
            return count_all(
                self.tables[kind],
                IndexName=STATUS_INDEX,
                KeyConditionExpression=Key("status").eq(status.value),
            )
        except ClientError as e:
            logger.error("Failed to count %s submissions: %s", kind.value, e)
            raise Exception(f"Failed to count {kind.value} submissions: {e}")

    def _query(self, kind: SubmissionKind, **kwargs) -> list[Submission]:
        try:
            items = query_all(self.tables[kind], **kwargs)
        except ClientError as e:
            logger.error("Failed to query %s submissions: %s", kind.value, e)
            raise Exception(f"Failed to query {kind.value} submissions: {e}")
        return self._to_models(kind, items)

    def _to_models(self, kind: SubmissionKind, items: list[dict]) -> list[Submission]:
        # Creation time order; rows written in the same instant keep store order
        items = sorted(items, key=lambda item: item["created_at"])
        return [self._to_model(kind, item) for item in items]

    @staticmethod
    def _to_model(kind: SubmissionKind, item: dict) -> Submission:
        return SUBMISSION_MODELS[kind](**item)
