"""Unit tests for StorageService and storage paths."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest

from tradepulse.api.middleware.error_handler import RemoteOperationError
from tradepulse.services.storage_service import StorageService, attachment_path, avatar_path

USER_ID = UUID("660e8400-e29b-41d4-a716-446655440000")


@pytest.fixture
def mock_supabase() -> MagicMock:
    return MagicMock()


@pytest.fixture
def storage_service(mock_supabase: MagicMock) -> StorageService:
    with patch("tradepulse.services.storage_service.get_supabase_client", return_value=mock_supabase):
        return StorageService()


class TestPaths:
    def test_avatar_path_is_deterministic(self) -> None:
        assert avatar_path(USER_ID) == avatar_path(str(USER_ID)) == f"{USER_ID}/avatar"

    def test_avatar_path_ignores_image_type(self) -> None:
        """A JPEG replacing a PNG lands on the same key, leaving no orphan."""
        assert "." not in avatar_path(USER_ID).rsplit("/", 1)[-1]

    def test_attachment_path_strips_separators(self) -> None:
        assert attachment_path(USER_ID, "abc", "../etc/passwd") == f"{USER_ID}/abc/.._etc_passwd"


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_with_upsert(self, storage_service: StorageService, mock_supabase: MagicMock) -> None:
        path = await storage_service.upload("avatars", f"{USER_ID}/avatar", b"data", "image/png")

        assert path == f"{USER_ID}/avatar"
        mock_supabase.storage.from_.assert_called_with("avatars")
        mock_supabase.storage.from_.return_value.upload.assert_called_once_with(
            path=f"{USER_ID}/avatar",
            file=b"data",
            file_options={"content-type": "image/png", "upsert": "true"},
        )

    @pytest.mark.asyncio
    async def test_upload_without_overwrite(
        self, storage_service: StorageService, mock_supabase: MagicMock
    ) -> None:
        await storage_service.upload("feedback-attachments", "x/y/z.pdf", b"%PDF", "application/pdf", overwrite=False)

        options = mock_supabase.storage.from_.return_value.upload.call_args.kwargs["file_options"]
        assert options["upsert"] == "false"

    @pytest.mark.asyncio
    async def test_upload_failure(self, storage_service: StorageService, mock_supabase: MagicMock) -> None:
        mock_supabase.storage.from_.return_value.upload.side_effect = Exception("413 Payload Too Large")

        with pytest.raises(RemoteOperationError) as exc_info:
            await storage_service.upload("avatars", "p", b"data", "image/png")

        assert exc_info.value.message == "Failed to upload file"


class TestPublicUrl:
    @pytest.mark.asyncio
    async def test_returns_url(self, storage_service: StorageService, mock_supabase: MagicMock) -> None:
        mock_supabase.storage.from_.return_value.get_public_url.return_value = "https://cdn/avatars/p"

        assert await storage_service.get_public_url("avatars", "p") == "https://cdn/avatars/p"

    @pytest.mark.asyncio
    async def test_empty_url_is_an_error(self, storage_service: StorageService, mock_supabase: MagicMock) -> None:
        mock_supabase.storage.from_.return_value.get_public_url.return_value = ""

        with pytest.raises(RemoteOperationError):
            await storage_service.get_public_url("avatars", "p")
