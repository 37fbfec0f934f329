"""Notification preferences form."""

from uuid import UUID

from tradepulse.forms.controller import FormController
from tradepulse.forms.definitions import NOTIFICATIONS_SCHEMA
from tradepulse.forms.pipeline import ActionPipeline, PipelineContext, PipelineStep
from tradepulse.schemas.form import SubmissionResult
from tradepulse.schemas.notifications import NotificationPreferencesSchema
from tradepulse.services.form_sessions import FormSession
from tradepulse.services.notification_service import NotificationService


class NotificationsForm(FormSession):
    form_name = "notifications"

    def __init__(
        self,
        user_id: UUID,
        preferences: NotificationPreferencesSchema,
        notification_service: NotificationService | None = None,
    ) -> None:
        super().__init__(user_id, FormController(NOTIFICATIONS_SCHEMA, preferences.model_dump()))
        self.notifications = notification_service or NotificationService()

    @classmethod
    async def load(cls, user_id: UUID) -> "NotificationsForm":
        service = NotificationService()
        preferences = await service.get_preferences(user_id)
        return cls(user_id, preferences, notification_service=service)

    async def submit(self) -> SubmissionResult:
        pipeline = ActionPipeline(
            [PipelineStep("save_preferences", self._save_preferences)],
            name="notification preferences",
        )
        return await self.controller.submit(pipeline)

    async def _save_preferences(self, ctx: PipelineContext) -> NotificationPreferencesSchema:
        preferences = NotificationPreferencesSchema.model_validate(dict(ctx.draft))
        saved = await self.notifications.update_preferences(self.user_id, preferences)
        ctx.record = saved.model_dump()
        return saved
