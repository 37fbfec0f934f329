"""Unit tests for FastAPI dependency injection functions."""

from collections.abc import Callable
from io import BytesIO

import pytest
from fastapi import Request, UploadFile
from starlette.datastructures import Headers

from tradepulse.api.deps import get_current_user, raise_for_failure, read_upload
from tradepulse.api.middleware.error_handler import (
    AuthenticationError,
    RemoteOperationError,
    ValidationError,
)
from tradepulse.schemas.auth import UserContext
from tradepulse.schemas.form import SubmissionResult


def make_request(cookie: str | None = None) -> Request:
    headers = [(b"cookie", cookie.encode())] if cookie else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestGetCurrentUser:
    """Tests for get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_bearer_token(self, mock_supabase_client: object, token_factory: Callable[..., str]) -> None:
        """Test get_current_user extracts UserContext from a valid bearer token."""
        token = token_factory()

        user = await get_current_user(make_request(), f"Bearer {token}")

        assert isinstance(user, UserContext)
        assert str(user.user_id) == "660e8400-e29b-41d4-a716-446655440000"
        assert user.email == "jane@example.com"
        assert user.access_token == token

    @pytest.mark.asyncio
    async def test_session_cookie(self, mock_supabase_client: object, token_factory: Callable[..., str]) -> None:
        """Test the session cookie is used when no header is sent."""
        token = token_factory()

        user = await get_current_user(make_request(f"sb-access-token={token}"), None)

        assert user.access_token == token

    @pytest.mark.asyncio
    async def test_missing_token(self, mock_supabase_client: object) -> None:
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(make_request(), None)

        assert exc_info.value.message == "Not authenticated"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, mock_supabase_client: object, token_factory: Callable[..., str]) -> None:
        with pytest.raises(AuthenticationError):
            await get_current_user(make_request(), f"Basic {token_factory()}")

    @pytest.mark.asyncio
    async def test_expired_token_uses_generic_message(
        self, mock_supabase_client: object, token_factory: Callable[..., str]
    ) -> None:
        """Test the reason a token was rejected never reaches the client."""
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(make_request(), f"Bearer {token_factory(exp_offset=-60)}")

        assert exc_info.value.message == "Not authenticated"
        assert exc_info.value.status_code == 401


class TestReadUpload:
    """Tests for read_upload helper."""

    @pytest.mark.asyncio
    async def test_reads_file(self) -> None:
        upload = UploadFile(
            file=BytesIO(b"\x89PNG data"),
            filename="me.png",
            headers=Headers({"content-type": "image/png"}),
        )

        selected = await read_upload(upload)

        assert selected is not None
        assert selected.name == "me.png"
        assert selected.content_type == "image/png"
        assert selected.data == b"\x89PNG data"

    @pytest.mark.asyncio
    async def test_empty_part_is_no_file(self) -> None:
        upload = UploadFile(file=BytesIO(b""), filename="")

        assert await read_upload(upload) is None

    @pytest.mark.asyncio
    async def test_none(self) -> None:
        assert await read_upload(None) is None


class TestRaiseForFailure:
    """Tests for raise_for_failure helper."""

    def test_success_is_silent(self) -> None:
        raise_for_failure(SubmissionResult(success=True, completed_steps=["save_preferences"]))

    def test_field_errors_become_validation_error(self) -> None:
        result = SubmissionResult(
            success=False,
            field_errors={"first_name": "First name is required."},
            error_message="Please correct the highlighted fields.",
        )

        with pytest.raises(ValidationError) as exc_info:
            raise_for_failure(result)

        assert exc_info.value.status_code == 422
        assert exc_info.value.field_errors == {"first_name": "First name is required."}

    def test_failed_step_becomes_remote_error(self) -> None:
        result = SubmissionResult(
            success=False,
            error_message="Failed to update profile",
            completed_steps=["upload_avatar"],
            failed_step="update_profile",
        )

        with pytest.raises(RemoteOperationError) as exc_info:
            raise_for_failure(result)

        error = exc_info.value
        assert error.status_code == 502
        assert error.message == "Failed to update profile"
        assert [d["type"] for d in error.details] == ["step_completed", "step_failed"]
        assert error.details[1]["loc"] == ["update_profile"]
