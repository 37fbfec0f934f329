"""Profile settings form: names, date of birth, avatar and an optional new password."""

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from tradepulse.api.middleware.error_handler import APIError, SubmissionInProgressError
from tradepulse.core.config import get_settings
from tradepulse.forms.controller import FormController
from tradepulse.forms.definitions import PROFILE_SCHEMA, avatar_policy
from tradepulse.forms.pipeline import ActionPipeline, PipelineContext, PipelineStep, StepCondition
from tradepulse.forms.preview import FileRejectedError, PreviewSlot, SelectedFile
from tradepulse.forms.schema import is_empty
from tradepulse.schemas.form import FilePreview, FormSnapshot, SubmissionResult
from tradepulse.schemas.profile import ProfileFieldsUpdate, ProfileRecord
from tradepulse.services.auth_service import AuthService
from tradepulse.services.form_sessions import FormSession
from tradepulse.services.profile_cache import ProfileCache
from tradepulse.services.profile_service import ProfileService
from tradepulse.services.storage_service import StorageService, avatar_path

logger = logging.getLogger(__name__)

AVATAR_FIELD = "avatar_file"


class ProfileForm(FormSession):
    """The signed-in user's profile form.

    Submission runs, in order: avatar upload, password change (only when a
    new password was entered), profile update, cache refresh. A failure
    stops the run; earlier steps stay applied.
    """

    form_name = "profile"

    def __init__(
        self,
        user_id: UUID,
        record: ProfileRecord,
        cache: ProfileCache,
        profile_service: ProfileService | None = None,
        storage_service: StorageService | None = None,
        auth_service: AuthService | None = None,
    ) -> None:
        super().__init__(user_id, FormController(PROFILE_SCHEMA, record.form_values()))
        self.record = record
        self.cache = cache
        self.avatar = PreviewSlot(AVATAR_FIELD, avatar_policy(), record.avatar_url)
        self.settings = get_settings()
        self.profiles = profile_service or ProfileService()
        self.storage = storage_service or StorageService()
        self._auth = auth_service

    @classmethod
    async def load(cls, user_id: UUID, cache: ProfileCache) -> "ProfileForm":
        """Build the form from the cached (or freshly fetched) profile."""
        profiles = ProfileService()
        record = await cache.get(user_id, profiles.get_profile)
        return cls(user_id, record, cache, profile_service=profiles)

    @property
    def auth(self) -> AuthService:
        # built on first use; most submissions never touch credentials
        if self._auth is None:
            self._auth = AuthService()
        return self._auth

    def snapshot(self) -> FormSnapshot:
        return self.controller.snapshot().model_copy(
            update={"preview": self.avatar.preview, "displayed_file": self.avatar.displayed}
        )

    async def select_avatar(self, file: SelectedFile) -> FilePreview:
        """Check and preview a new avatar.

        Raises:
            FileRejectedError: The file is too large or not an image. The
                current avatar stays on display.
        """
        if self.is_submitting:
            raise SubmissionInProgressError()
        try:
            preview = await self.avatar.select(file)
        except FileRejectedError as e:
            self.controller.reject_field(AVATAR_FIELD, e.message)
            raise

        if self.avatar.pending is file:
            self.controller.set_field(AVATAR_FIELD, file)
        return preview

    def clear_avatar(self) -> FormSnapshot:
        """Drop the pending avatar; the stored one is shown again."""
        self.controller.set_field(AVATAR_FIELD, None)
        self.avatar.clear()
        return self.snapshot()

    async def apply_and_submit(
        self,
        values: Mapping[str, Any],
        avatar: SelectedFile | None = None,
    ) -> SubmissionResult:
        """Fill in the whole form, optionally with a new avatar, and submit it.

        A password or avatar left pending by earlier edits is dropped unless
        this call supplies it again.
        """
        schema = self.controller.schema
        stale = {
            name: schema.fields[name].default
            for name in schema.ephemeral_fields
            if name != AVATAR_FIELD and name not in values
        }
        self.update_fields({**stale, **values})
        if avatar is not None:
            await self.select_avatar(avatar)
        elif self.avatar.pending is not None or self.controller.values.get(AVATAR_FIELD) is not None:
            self.clear_avatar()
        return await self.submit()

    async def submit(self) -> SubmissionResult:
        result = await self.controller.submit(self._pipeline())
        if result.success and result.record and not self.controller.disposed:
            self.record = ProfileRecord.model_validate(result.record)
            self.avatar.commit(self.record.avatar_url)
        return result

    def _pipeline(self) -> ActionPipeline:
        return ActionPipeline(
            [
                PipelineStep("upload_avatar", self._upload_avatar, when=_has(AVATAR_FIELD)),
                PipelineStep("update_credential", self._update_credential, when=_has("new_password")),
                PipelineStep("update_profile", self._update_profile),
                PipelineStep("refresh_profile", self._refresh_profile),
            ],
            name="profile submission",
        )

    async def _upload_avatar(self, ctx: PipelineContext) -> str:
        file: SelectedFile = ctx.draft[AVATAR_FIELD]
        bucket = self.settings.avatar_bucket
        path = avatar_path(self.user_id)
        await self.storage.upload(bucket, path, file.data, file.content_type, overwrite=True)
        return await self.storage.get_public_url(bucket, path)

    async def _update_credential(self, ctx: PipelineContext) -> None:
        await self.auth.update_credential(self.user_id, ctx.draft["new_password"])

    async def _update_profile(self, ctx: PipelineContext) -> ProfileRecord:
        fields = ProfileFieldsUpdate(
            first_name=ctx.draft["first_name"].strip(),
            last_name=ctx.draft["last_name"].strip(),
            dob=ctx.draft.get("dob"),
            avatar_url=ctx.outputs.get("upload_avatar") or self.record.avatar_url,
        )
        record = await self.profiles.update_profile(self.user_id, fields)
        ctx.record = record.model_dump()
        return record

    async def _refresh_profile(self, ctx: PipelineContext) -> ProfileRecord | None:
        self.cache.invalidate(self.user_id)
        try:
            record = await self.cache.get(self.user_id, self.profiles.get_profile)
        except APIError as e:
            # the update already returned the stored row; the next read refetches
            logger.warning("Refetching profile for %s failed: %s", self.user_id, e.message)
            return None
        ctx.record = record.model_dump()
        return record


def _has(name: str) -> StepCondition:
    def condition(ctx: PipelineContext) -> bool:
        return not is_empty(ctx.draft.get(name))

    return condition
