"""Feedback store collaborator."""

import logging
from uuid import UUID

from tradepulse.api.middleware.error_handler import RemoteOperationError
from tradepulse.core.supabase import get_supabase_client
from tradepulse.models.feedback import Feedback, FeedbackCreate
from tradepulse.schemas.feedback import FeedbackRecord

logger = logging.getLogger(__name__)


class FeedbackService:
    """Service for storing user feedback."""

    def __init__(self) -> None:
        """Initialize feedback service with Supabase client."""
        self.client = get_supabase_client()

    async def insert_feedback(
        self,
        user_id: UUID,
        subject: str,
        message: str,
        attachment_url: str | None = None,
    ) -> FeedbackRecord:
        """Store one feedback entry.

        Raises:
            RemoteOperationError: If the insert fails.
        """
        row: FeedbackCreate = {
            "user_id": str(user_id),
            "subject": subject.strip(),
            "message": message.strip(),
        }
        if attachment_url:
            row["attachment_url"] = attachment_url

        try:
            response = self.client.table("feedbacks").insert(row).execute()
        except Exception as e:
            logger.error("Error submitting feedback for %s: %s", user_id, e)
            raise RemoteOperationError("Failed to submit feedback") from e

        logger.info("Feedback stored for user %s", user_id)
        stored: list[Feedback] = response.data or []
        if stored:
            return FeedbackRecord.model_validate(stored[0])
        return FeedbackRecord(subject=row["subject"], message=row["message"], attachment_url=attachment_url)
