"""Profile API routes: the cached profile record and the profile settings form."""

from datetime import date

from fastapi import APIRouter, File, Form, UploadFile

from tradepulse.api.deps import (
    CurrentUser,
    FormSessions,
    ProfileCacheDep,
    raise_for_failure,
    read_upload,
)
from tradepulse.api.middleware.error_handler import ValidationError
from tradepulse.schemas.auth import UserContext
from tradepulse.schemas.profile import (
    ProfileFormResponse,
    ProfileFormUpdate,
    ProfileRecord,
    ProfileSubmissionResponse,
)
from tradepulse.services.form_sessions import FormSessionRegistry
from tradepulse.services.profile_cache import ProfileCache
from tradepulse.services.profile_form import AVATAR_FIELD, ProfileForm
from tradepulse.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


async def _profile_form(
    user: UserContext,
    cache: ProfileCache,
    sessions: FormSessionRegistry,
) -> ProfileForm:
    return await sessions.get_or_create(
        ProfileForm.form_name,
        user.user_id,
        lambda: ProfileForm.load(user.user_id, cache),
    )


def _form_response(form: ProfileForm) -> ProfileFormResponse:
    return ProfileFormResponse(form=form.snapshot(), profile=form.record)


async def _submit(form: ProfileForm) -> ProfileSubmissionResponse:
    result = await form.submit()
    raise_for_failure(result)
    return ProfileSubmissionResponse(result=result, form=form.snapshot(), profile=form.record)


@router.get(
    "/me",
    response_model=ProfileRecord,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile, served from the profile cache.",
)
async def get_my_profile(user: CurrentUser, cache: ProfileCacheDep) -> ProfileRecord:
    """Get the authenticated user's profile.

    Raises:
        NotFoundError: 404 if the user has no profile row.
    """
    service = ProfileService()
    return await cache.get(user.user_id, service.get_profile)


@router.post(
    "/me/refresh",
    response_model=ProfileRecord,
    summary="Refetch current user's profile",
    description="Drops the cached profile and loads it again from the profile store.",
)
async def refresh_my_profile(user: CurrentUser, cache: ProfileCacheDep) -> ProfileRecord:
    service = ProfileService()
    return await cache.refresh(user.user_id, service.get_profile)


@router.get(
    "/me/form",
    response_model=ProfileFormResponse,
    summary="Get profile form",
    description="Current draft, errors and lifecycle state of the profile settings form.",
)
async def get_profile_form(
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
) -> ProfileFormResponse:
    form = await _profile_form(user, cache, sessions)
    return _form_response(form)


@router.patch(
    "/me/form",
    response_model=ProfileFormResponse,
    summary="Edit profile form fields",
    description="Applies field edits. Only the edited fields are re-validated.",
)
async def edit_profile_form(
    data: ProfileFormUpdate,
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
) -> ProfileFormResponse:
    """Apply field edits to the draft.

    Field-level validation messages are part of the returned form state;
    the request itself only fails for read-only fields (422) or while a
    submission is in flight (409).
    """
    form = await _profile_form(user, cache, sessions)
    form.update_fields(data.model_dump(exclude_unset=True))
    return _form_response(form)


@router.post(
    "/me/form/avatar",
    response_model=ProfileFormResponse,
    summary="Select avatar",
    description="Checks the image against the size and type policy and returns an inline preview.",
)
async def select_avatar(
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
    file: UploadFile = File(..., description="Avatar image"),
) -> ProfileFormResponse:
    """Select a new avatar.

    Raises:
        ValidationError: 422 if the file is too large or not an image; the
            stored avatar stays on display.
    """
    form = await _profile_form(user, cache, sessions)
    selected = await read_upload(file)
    if selected is None:
        raise ValidationError.from_field_errors({AVATAR_FIELD: "Please select a valid image file."})
    await form.select_avatar(selected)
    return _form_response(form)


@router.delete(
    "/me/form/avatar",
    response_model=ProfileFormResponse,
    summary="Discard selected avatar",
)
async def clear_avatar(
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
) -> ProfileFormResponse:
    form = await _profile_form(user, cache, sessions)
    form.clear_avatar()
    return _form_response(form)


@router.post(
    "/me/form/submit",
    response_model=ProfileSubmissionResponse,
    summary="Submit profile form",
    description=(
        "Validates the draft, then uploads the avatar, changes the password if one was entered "
        "and updates the profile, in that order. Steps completed before a failure are not undone."
    ),
)
async def submit_profile_form(
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
) -> ProfileSubmissionResponse:
    """Submit the profile form.

    Raises:
        ValidationError: 422 if the draft is invalid; nothing is sent.
        SubmissionInProgressError: 409 if a submission is already running.
        RemoteOperationError: 502 if a side effect failed.
    """
    form = await _profile_form(user, cache, sessions)
    return await _submit(form)


@router.put(
    "/me",
    response_model=ProfileSubmissionResponse,
    summary="Update current user's profile",
    description="Edits the profile form, optionally selects an avatar, and submits, in a single multipart request.",
)
async def update_my_profile(
    user: CurrentUser,
    cache: ProfileCacheDep,
    sessions: FormSessions,
    first_name: str | None = Form(default=None),
    last_name: str | None = Form(default=None),
    dob: date | None = Form(default=None),
    new_password: str | None = Form(default=None),
    confirm_password: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None, description="Avatar image"),
) -> ProfileSubmissionResponse:
    form = await _profile_form(user, cache, sessions)

    values = {
        "first_name": first_name,
        "last_name": last_name,
        "dob": dob,
        "new_password": new_password,
        "confirm_password": confirm_password,
    }
    result = await form.apply_and_submit(
        {name: value for name, value in values.items() if value is not None},
        avatar=await read_upload(avatar),
    )
    raise_for_failure(result)
    return ProfileSubmissionResponse(result=result, form=form.snapshot(), profile=form.record)
