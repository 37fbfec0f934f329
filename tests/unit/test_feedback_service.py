"""Unit tests for FeedbackService and NotificationService."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest

from tradepulse.api.middleware.error_handler import RemoteOperationError
from tradepulse.schemas.notifications import NotificationPreferencesSchema
from tradepulse.services.feedback_service import FeedbackService
from tradepulse.services.notification_service import NotificationService

USER_ID = UUID("660e8400-e29b-41d4-a716-446655440000")


@pytest.fixture
def mock_supabase() -> MagicMock:
    return MagicMock()


@pytest.fixture
def feedback_service(mock_supabase: MagicMock) -> FeedbackService:
    with patch("tradepulse.services.feedback_service.get_supabase_client", return_value=mock_supabase):
        return FeedbackService()


@pytest.fixture
def notification_service(mock_supabase: MagicMock) -> NotificationService:
    with patch("tradepulse.services.notification_service.get_supabase_client", return_value=mock_supabase):
        return NotificationService()


class TestInsertFeedback:
    """Tests for insert_feedback method."""

    @pytest.mark.asyncio
    async def test_inserts_trimmed_row(self, feedback_service: FeedbackService, mock_supabase: MagicMock) -> None:
        mock_response = MagicMock()
        mock_response.data = [
            {"id": 7, "subject": "Charts are slow", "message": "The portfolio chart takes ages.", "attachment_url": None}
        ]
        mock_supabase.table.return_value.insert.return_value.execute.return_value = mock_response

        record = await feedback_service.insert_feedback(
            USER_ID, "  Charts are slow ", "The portfolio chart takes ages.  "
        )

        assert record.id == 7
        mock_supabase.table.assert_called_with("feedbacks")
        mock_supabase.table.return_value.insert.assert_called_once_with(
            {
                "user_id": str(USER_ID),
                "subject": "Charts are slow",
                "message": "The portfolio chart takes ages.",
            }
        )

    @pytest.mark.asyncio
    async def test_includes_attachment_url(
        self, feedback_service: FeedbackService, mock_supabase: MagicMock
    ) -> None:
        mock_supabase.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[])

        record = await feedback_service.insert_feedback(
            USER_ID, "Charts are slow", "The portfolio chart takes ages.", "https://cdn/f.pdf"
        )

        row = mock_supabase.table.return_value.insert.call_args.args[0]
        assert row["attachment_url"] == "https://cdn/f.pdf"
        assert record.attachment_url == "https://cdn/f.pdf"

    @pytest.mark.asyncio
    async def test_failure(self, feedback_service: FeedbackService, mock_supabase: MagicMock) -> None:
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = Exception("permission denied")

        with pytest.raises(RemoteOperationError) as exc_info:
            await feedback_service.insert_feedback(USER_ID, "Charts are slow", "The portfolio chart takes ages.")

        assert exc_info.value.message == "Failed to submit feedback"


class TestNotificationPreferences:
    """Tests for NotificationService."""

    @pytest.mark.asyncio
    async def test_defaults_when_never_saved(
        self, notification_service: NotificationService, mock_supabase: MagicMock
    ) -> None:
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            None
        )

        preferences = await notification_service.get_preferences(USER_ID)

        assert preferences == NotificationPreferencesSchema()
        assert preferences.security_emails is True

    @pytest.mark.asyncio
    async def test_reads_stored_row(
        self, notification_service: NotificationService, mock_supabase: MagicMock
    ) -> None:
        mock_response = MagicMock()
        mock_response.data = {"user_id": str(USER_ID), "marketing_emails": True, "push_notifications": "none"}
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            mock_response
        )

        preferences = await notification_service.get_preferences(USER_ID)

        assert preferences.marketing_emails is True
        assert preferences.push_notifications == "none"

    @pytest.mark.asyncio
    async def test_update_upserts_by_user(
        self, notification_service: NotificationService, mock_supabase: MagicMock
    ) -> None:
        mock_supabase.table.return_value.upsert.return_value.execute.return_value = MagicMock(data=[])
        wanted = NotificationPreferencesSchema(marketing_emails=True)

        saved = await notification_service.update_preferences(USER_ID, wanted)

        assert saved == wanted
        row = mock_supabase.table.return_value.upsert.call_args.args[0]
        assert row["user_id"] == str(USER_ID)
        assert row["marketing_emails"] is True
        assert mock_supabase.table.return_value.upsert.call_args.kwargs == {"on_conflict": "user_id"}

    @pytest.mark.asyncio
    async def test_update_failure(
        self, notification_service: NotificationService, mock_supabase: MagicMock
    ) -> None:
        mock_supabase.table.return_value.upsert.return_value.execute.side_effect = Exception("timeout")

        with pytest.raises(RemoteOperationError) as exc_info:
            await notification_service.update_preferences(USER_ID, NotificationPreferencesSchema())

        assert exc_info.value.message == "Failed to update settings."
