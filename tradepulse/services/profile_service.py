"""Profile store collaborator."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from tradepulse.api.middleware.error_handler import NotFoundError, RemoteOperationError
from tradepulse.core.supabase import get_supabase_client
from tradepulse.models.profile import Profile, ProfileUpdate
from tradepulse.schemas.profile import ProfileFieldsUpdate, ProfileRecord

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for reading and updating user profiles."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()

    async def get_profile(self, user_id: UUID) -> ProfileRecord:
        """Get a profile by user ID.

        Args:
            user_id: The auth user ID.

        Returns:
            ProfileRecord: The stored profile.

        Raises:
            NotFoundError: If the user has no profile row.
            RemoteOperationError: If the profile store call fails.
        """
        try:
            response = (
                self.client.table("profiles")
                .select("*")
                .eq("user_id", str(user_id))
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error("Fetching profile for %s failed: %s", user_id, e)
            raise RemoteOperationError("Failed to fetch profile") from e

        data: Profile | None = response.data if response is not None else None
        if not data:
            raise NotFoundError("Profile not found")

        return ProfileRecord.model_validate(data)

    async def update_profile(self, user_id: UUID, fields: ProfileFieldsUpdate) -> ProfileRecord:
        """Update the editable profile columns in one call.

        Args:
            user_id: The auth user ID.
            fields: New values for name, date of birth and avatar.

        Returns:
            ProfileRecord: The profile as stored after the update.

        Raises:
            NotFoundError: If no row was updated.
            RemoteOperationError: If the profile store call fails.
        """
        update_data: ProfileUpdate = {
            "first_name": fields.first_name.strip(),
            "last_name": fields.last_name.strip(),
            "dob": fields.dob.isoformat() if fields.dob else None,
            "avatar": fields.avatar_url,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = (
                self.client.table("profiles")
                .update(update_data)
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            logger.error("Updating profile for %s failed: %s", user_id, e)
            raise RemoteOperationError("Failed to update profile") from e

        if not response.data:
            raise NotFoundError("Profile not found")

        logger.info("Profile updated for user %s", user_id)
        return ProfileRecord.model_validate(response.data[0])
