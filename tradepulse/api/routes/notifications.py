"""Notification preference API routes."""

from fastapi import APIRouter

from tradepulse.api.deps import CurrentUser, FormSessions, raise_for_failure
from tradepulse.schemas.notifications import (
    NotificationPreferencesSchema,
    NotificationPreferencesUpdate,
)
from tradepulse.services.notification_service import NotificationService
from tradepulse.services.notifications_form import NotificationsForm

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "/preferences",
    response_model=NotificationPreferencesSchema,
    summary="Get notification preferences",
    description="Stored preferences, or the defaults when the user has never saved any.",
)
async def get_preferences(user: CurrentUser) -> NotificationPreferencesSchema:
    service = NotificationService()
    return await service.get_preferences(user.user_id)


@router.put(
    "/preferences",
    response_model=NotificationPreferencesSchema,
    summary="Update notification preferences",
    description="Applies the given settings on top of the current ones and saves them.",
)
async def update_preferences(
    data: NotificationPreferencesUpdate,
    user: CurrentUser,
    sessions: FormSessions,
) -> NotificationPreferencesSchema:
    """Update notification preferences.

    Raises:
        ValidationError: 422 for an unknown push notification option.
        SubmissionInProgressError: 409 if an update is already running.
        RemoteOperationError: 502 if saving failed.
    """
    form = await sessions.get_or_create(
        NotificationsForm.form_name,
        user.user_id,
        lambda: NotificationsForm.load(user.user_id),
    )
    form.update_fields(data.model_dump(exclude_none=True))
    result = await form.submit()
    raise_for_failure(result)
    return NotificationPreferencesSchema.model_validate(result.record)
