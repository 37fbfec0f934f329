"""Object storage collaborator (Supabase Storage)."""

import logging
from uuid import UUID

from tradepulse.api.middleware.error_handler import RemoteOperationError
from tradepulse.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)


def avatar_path(user_id: UUID | str) -> str:
    """Deterministic storage key of a user's avatar.

    The key carries no extension, so a new avatar of any image type
    overwrites the previous one; the type travels as the object's
    content-type.
    """
    return f"{user_id}/avatar"


def attachment_path(user_id: UUID | str, token: str, filename: str) -> str:
    """Storage key of a feedback attachment."""
    safe_name = filename.replace("/", "_").replace("\\", "_") or "attachment"
    return f"{user_id}/{token}/{safe_name}"


class StorageService:
    """Uploads files and resolves their public URLs."""

    def __init__(self) -> None:
        """Initialize storage service with Supabase client."""
        self.client = get_supabase_client()

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> str:
        """Upload bytes to ``bucket`` under ``path``.

        Args:
            bucket: Storage bucket name.
            path: Object key inside the bucket.
            data: File content.
            content_type: MIME type stored with the object.
            overwrite: Replace an existing object at the same key (upsert).

        Returns:
            str: The storage path.

        Raises:
            RemoteOperationError: If the upload fails.
        """
        try:
            self.client.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "upsert": "true" if overwrite else "false",
                },
            )
        except Exception as e:
            logger.error("Upload to %s/%s failed: %s", bucket, path, e)
            raise RemoteOperationError("Failed to upload file") from e

        logger.info("Uploaded %d bytes to %s/%s", len(data), bucket, path)
        return path

    async def get_public_url(self, bucket: str, path: str) -> str:
        """Resolve the public URL of an uploaded object.

        Raises:
            RemoteOperationError: If the URL cannot be resolved.
        """
        try:
            url = self.client.storage.from_(bucket).get_public_url(path)
        except Exception as e:
            logger.error("Public URL lookup for %s/%s failed: %s", bucket, path, e)
            raise RemoteOperationError("Failed to resolve file URL") from e

        if not url:
            raise RemoteOperationError("Failed to resolve file URL")
        return url
