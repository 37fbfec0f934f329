"""Feedback form: subject, message and an optional attachment."""

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from tradepulse.api.middleware.error_handler import SubmissionInProgressError
from tradepulse.core.config import get_settings
from tradepulse.forms.controller import FormController
from tradepulse.forms.definitions import FEEDBACK_SCHEMA, attachment_policy
from tradepulse.forms.pipeline import ActionPipeline, PipelineContext, PipelineStep
from tradepulse.forms.preview import FileRejectedError, PreviewSlot, SelectedFile
from tradepulse.schemas.feedback import FeedbackRecord
from tradepulse.schemas.form import FilePreview, FormSnapshot, SubmissionResult
from tradepulse.services.feedback_service import FeedbackService
from tradepulse.services.form_sessions import FormSession
from tradepulse.services.storage_service import StorageService, attachment_path

logger = logging.getLogger(__name__)

ATTACHMENT_FIELD = "attachment_file"


class FeedbackForm(FormSession):
    """Feedback form. Starts empty again after every successful submission."""

    form_name = "feedback"

    def __init__(
        self,
        user_id: UUID,
        feedback_service: FeedbackService | None = None,
        storage_service: StorageService | None = None,
    ) -> None:
        super().__init__(user_id, FormController(FEEDBACK_SCHEMA))
        self.attachment = PreviewSlot(ATTACHMENT_FIELD, attachment_policy())
        self.settings = get_settings()
        self.feedbacks = feedback_service or FeedbackService()
        self.storage = storage_service or StorageService()

    def snapshot(self) -> FormSnapshot:
        return self.controller.snapshot().model_copy(
            update={"preview": self.attachment.preview, "displayed_file": self.attachment.displayed}
        )

    async def select_attachment(self, file: SelectedFile) -> FilePreview:
        """Check and preview an attachment.

        Raises:
            FileRejectedError: The file is too large or of a type not accepted.
        """
        if self.is_submitting:
            raise SubmissionInProgressError()
        try:
            preview = await self.attachment.select(file)
        except FileRejectedError as e:
            self.controller.reject_field(ATTACHMENT_FIELD, e.message)
            raise

        if self.attachment.pending is file:
            self.controller.set_field(ATTACHMENT_FIELD, file)
        return preview

    def clear_attachment(self) -> None:
        self.controller.set_field(ATTACHMENT_FIELD, None)
        self.attachment.clear()

    async def apply_and_submit(
        self,
        values: Mapping[str, Any],
        attachment: SelectedFile | None = None,
    ) -> SubmissionResult:
        """Fill in the whole form and submit it."""
        self.update_fields(values)
        if attachment is not None:
            await self.select_attachment(attachment)
        elif self.controller.values.get(ATTACHMENT_FIELD) is not None:
            self.clear_attachment()
        return await self.submit()

    async def submit(self) -> SubmissionResult:
        result = await self.controller.submit(self._pipeline())
        if result.success and not self.controller.disposed:
            self.controller.reset()
            self.attachment.clear()
        return result

    def _pipeline(self) -> ActionPipeline:
        return ActionPipeline(
            [
                PipelineStep(
                    "upload_attachment",
                    self._upload_attachment,
                    when=lambda ctx: ctx.draft.get(ATTACHMENT_FIELD) is not None,
                ),
                PipelineStep("insert_feedback", self._insert_feedback),
            ],
            name="feedback submission",
        )

    async def _upload_attachment(self, ctx: PipelineContext) -> str:
        file: SelectedFile = ctx.draft[ATTACHMENT_FIELD]
        bucket = self.settings.attachment_bucket
        path = attachment_path(self.user_id, uuid4().hex, file.name)
        await self.storage.upload(bucket, path, file.data, file.content_type, overwrite=False)
        return await self.storage.get_public_url(bucket, path)

    async def _insert_feedback(self, ctx: PipelineContext) -> FeedbackRecord:
        record = await self.feedbacks.insert_feedback(
            self.user_id,
            ctx.draft["subject"],
            ctx.draft["message"],
            attachment_url=ctx.outputs.get("upload_attachment"),
        )
        ctx.record = record.model_dump()
        return record
