"""FastAPI dependency injection functions."""

import logging
from typing import Annotated

from fastapi import Depends, Header, Request, Response, UploadFile

from tradepulse.api.middleware.auth import AuthError, decode_jwt
from tradepulse.api.middleware.error_handler import (
    UNEXPECTED_ERROR_MESSAGE,
    AuthenticationError,
    RemoteOperationError,
    ValidationError,
)
from tradepulse.core.config import get_settings
from tradepulse.forms.preview import SelectedFile
from tradepulse.schemas.auth import UserContext
from tradepulse.schemas.form import SubmissionResult
from tradepulse.services.form_sessions import FormSessionRegistry
from tradepulse.services.profile_cache import ProfileCache

logger = logging.getLogger(__name__)


def get_session_cookie_config() -> dict:
    """Get session cookie configuration from settings."""
    settings = get_settings()
    # SameSite=None requires Secure=True; fall back to Lax for local development
    samesite = "none" if settings.session_cookie_secure else "lax"
    return {
        "max_age": settings.session_cookie_max_age,
        "httponly": True,
        "secure": settings.session_cookie_secure,
        "samesite": samesite,
        "path": "/",
    }


def get_access_token(request: Request, authorization: str | None) -> str | None:
    """Extract the access token from the Bearer header or, failing that, the session cookie."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
        return None
    return request.cookies.get(get_settings().access_token_cookie_name)


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header(description="Bearer token")] = None,
) -> UserContext:
    """Resolve the signed-in user from a verified Supabase JWT.

    Raises:
        AuthenticationError: 401 "Not authenticated" when the token is
            missing, malformed, expired or forged. The cause is logged,
            never returned.
    """
    token = get_access_token(request, authorization)
    if not token:
        raise AuthenticationError()

    try:
        payload = decode_jwt(token)
    except AuthError as e:
        logger.info("Rejected access token: %s", e.code.value)
        raise AuthenticationError() from e

    return payload.to_user_context(access_token=token)


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def set_session_cookies(response: Response, access_token: str, refresh_token: str | None = None) -> None:
    """Relay the Supabase session to the browser as HttpOnly cookies."""
    settings = get_settings()
    config = get_session_cookie_config()
    response.set_cookie(key=settings.access_token_cookie_name, value=access_token, **config)
    if refresh_token:
        response.set_cookie(key=settings.refresh_token_cookie_name, value=refresh_token, **config)


def clear_session_cookies(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(key=settings.access_token_cookie_name, path="/")
    response.delete_cookie(key=settings.refresh_token_cookie_name, path="/")


def get_profile_cache(request: Request) -> ProfileCache:
    return request.app.state.profile_cache


def get_form_sessions(request: Request) -> FormSessionRegistry:
    return request.app.state.form_sessions


ProfileCacheDep = Annotated[ProfileCache, Depends(get_profile_cache)]
FormSessions = Annotated[FormSessionRegistry, Depends(get_form_sessions)]


async def read_upload(upload: UploadFile | None) -> SelectedFile | None:
    """Read a multipart file part into memory.

    An empty part (no file chosen in the browser) counts as no file.
    """
    if upload is None:
        return None
    data = await upload.read()
    if not upload.filename and not data:
        return None
    return SelectedFile(
        name=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


def raise_for_failure(result: SubmissionResult) -> None:
    """Turn a failed submission into the matching API error.

    Field problems become a 422 with field details; a failed side effect
    becomes a 502 naming the step that stopped the submission.
    """
    if result.success:
        return
    if result.field_errors:
        raise ValidationError.from_field_errors(
            result.field_errors,
            message=result.error_message or "Please correct the highlighted fields.",
        )
    details = None
    if result.failed_step:
        details = [
            {"loc": [step], "msg": "completed", "type": "step_completed"}
            for step in result.completed_steps
        ]
        details.append({"loc": [result.failed_step], "msg": result.error_message or "failed", "type": "step_failed"})
    raise RemoteOperationError(result.error_message or UNEXPECTED_ERROR_MESSAGE, details=details)
