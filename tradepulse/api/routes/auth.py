"""Authentication API routes."""

import logging
from typing import Any

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import RedirectResponse

from tradepulse.api.deps import (
    CurrentUser,
    FormSessions,
    ProfileCacheDep,
    clear_session_cookies,
    set_session_cookies,
)
from tradepulse.api.middleware.error_handler import AuthenticationError, ValidationError
from tradepulse.core.config import get_settings
from tradepulse.forms.definitions import EMAIL_ONLY_SCHEMA, SIGNIN_SCHEMA, SIGNUP_SCHEMA
from tradepulse.forms.schema import FormSchema
from tradepulse.schemas.auth import (
    CurrentUserResponse,
    EmailRequest,
    EmailSentResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
)
from tradepulse.schemas.common import MessageResponse
from tradepulse.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _validate(schema: FormSchema, data: dict[str, Any]) -> None:
    errors = schema.validate(data)
    if errors:
        raise ValidationError.from_field_errors(errors)


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up new user",
    description="Create a new account. The name and username seed the user's profile.",
)
async def signup(data: SignupRequest) -> SignupResponse:
    """Sign up a new user with email and password.

    Raises:
        ValidationError: 422 with field messages if the form is invalid or
            the email is already registered.
    """
    _validate(SIGNUP_SCHEMA, data.model_dump())

    service = AuthService()
    result = await service.sign_up(
        email=data.email.strip(),
        password=data.password,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        username=data.username.strip(),
    )
    return SignupResponse(**result)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="Sign in with email and password. The session is also relayed as HttpOnly cookies.",
)
async def login(data: LoginRequest, response: Response) -> LoginResponse:
    """Sign in with email and password.

    Raises:
        ValidationError: 422 if the email or password is missing or malformed.
        AuthenticationError: 401 if the credentials are rejected.
    """
    _validate(SIGNIN_SCHEMA, data.model_dump())

    service = AuthService()
    result = await service.sign_in(email=data.email.strip(), password=data.password)
    set_session_cookies(response, result["access_token"], result.get("refresh_token"))
    return LoginResponse(**result)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Revoke the session and drop every piece of per-user state held by the server.",
)
async def logout(
    user: CurrentUser,
    response: Response,
    cache: ProfileCacheDep,
    sessions: FormSessions,
) -> MessageResponse:
    """Sign out the current user.

    Local state (cached profile, open forms, cookies) is dropped even if
    revoking the remote session fails.
    """
    service = AuthService()
    await service.sign_out(user.access_token or "")

    cache.clear(user.user_id)
    sessions.discard_user(user.user_id)
    clear_session_cookies(response)
    return MessageResponse(message="Signed out successfully")


@router.post(
    "/magic-link",
    response_model=EmailSentResponse,
    summary="Send magic link",
    description="Email a one-time sign-in link.",
)
async def magic_link(data: EmailRequest) -> EmailSentResponse:
    _validate(EMAIL_ONLY_SCHEMA, data.model_dump())

    service = AuthService()
    await service.send_magic_link(data.email.strip())
    return EmailSentResponse(message="Check your email for the magic link.", email_sent=True)


@router.post(
    "/forgot-password",
    response_model=EmailSentResponse,
    summary="Request password reset",
    description="Send a password reset email. Always succeeds to avoid revealing which emails are registered.",
)
async def forgot_password(data: EmailRequest) -> EmailSentResponse:
    _validate(EMAIL_ONLY_SCHEMA, data.model_dump())

    service = AuthService()
    result = await service.reset_password(data.email.strip())
    return EmailSentResponse(**result)


@router.get(
    "/callback",
    response_class=RedirectResponse,
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Email link callback",
    description="Target of magic-link and confirmation emails. Redirects to the dashboard or back to login.",
)
async def auth_callback(
    token_hash: str | None = Query(default=None, description="Token hash from the email link"),
    token_type: str = Query(default="email", alias="type", description="Link type (email, magiclink, signup)"),
) -> RedirectResponse:
    """Verify the emailed link and relay the resulting session as cookies."""
    site_url = get_settings().site_url.rstrip("/")
    if not token_hash:
        return RedirectResponse(f"{site_url}/auth/login", status_code=status.HTTP_303_SEE_OTHER)

    service = AuthService()
    try:
        result = await service.verify_token_hash(token_hash, token_type)
    except AuthenticationError:
        return RedirectResponse(f"{site_url}/auth/login", status_code=status.HTTP_303_SEE_OTHER)

    redirect = RedirectResponse(f"{site_url}/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookies(redirect, result["access_token"], result.get("refresh_token"))
    return redirect


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current user",
    description="The signed-in user as known to the auth provider.",
)
async def me(user: CurrentUser) -> CurrentUserResponse:
    service = AuthService()
    auth_user = await service.get_current_user(user.access_token or "")
    if auth_user is None:
        raise AuthenticationError()

    return CurrentUserResponse(
        user_id=str(auth_user.id),
        email=auth_user.email,
        role=auth_user.role,
        email_confirmed=bool(getattr(auth_user, "email_confirmed_at", None)),
    )
