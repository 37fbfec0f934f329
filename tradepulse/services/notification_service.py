"""Notification preference store."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from tradepulse.api.middleware.error_handler import RemoteOperationError
from tradepulse.core.supabase import get_supabase_client
from tradepulse.models.notification import NotificationPreferences
from tradepulse.schemas.notifications import NotificationPreferencesSchema

logger = logging.getLogger(__name__)


class NotificationService:
    """Reads and writes per-user notification preferences."""

    def __init__(self) -> None:
        self.client = get_supabase_client()

    async def get_preferences(self, user_id: UUID) -> NotificationPreferencesSchema:
        """Stored preferences, or the defaults if the user never saved any."""
        try:
            response = (
                self.client.table("notification_preferences")
                .select("*")
                .eq("user_id", str(user_id))
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error("Fetching notification preferences for %s failed: %s", user_id, e)
            raise RemoteOperationError("Failed to load notification settings") from e

        data = response.data if response is not None else None
        if not data:
            return NotificationPreferencesSchema()
        return NotificationPreferencesSchema.model_validate(data)

    async def update_preferences(
        self,
        user_id: UUID,
        preferences: NotificationPreferencesSchema,
    ) -> NotificationPreferencesSchema:
        """Upsert the user's preferences row."""
        row: NotificationPreferences = {
            "user_id": str(user_id),
            **preferences.model_dump(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = (
                self.client.table("notification_preferences")
                .upsert(row, on_conflict="user_id")
                .execute()
            )
        except Exception as e:
            logger.error("Saving notification preferences for %s failed: %s", user_id, e)
            raise RemoteOperationError("Failed to update settings.") from e

        logger.info("Notification preferences updated for user %s", user_id)
        if response.data:
            return NotificationPreferencesSchema.model_validate(response.data[0])
        return preferences
