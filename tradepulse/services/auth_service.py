"""Auth collaborator (Supabase Auth)."""

import logging
from typing import Any
from uuid import UUID

from tradepulse.api.middleware.error_handler import (
    AuthenticationError,
    RemoteOperationError,
    ValidationError,
)
from tradepulse.core.config import get_settings
from tradepulse.core.supabase import create_auth_client

logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = "If an account exists with this email, a password reset link has been sent."


class AuthService:
    """Service for signing users up, in and out and managing credentials."""

    def __init__(self) -> None:
        """Initialize auth service with an isolated Supabase client.

        Uses create_auth_client() so sign-in sessions never reach the
        shared data client.
        """
        self.client = create_auth_client()
        self.settings = get_settings()

    async def sign_up(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        username: str,
    ) -> dict[str, Any]:
        """Sign up a new user with email and password.

        The profile seed travels as user metadata; the profiles row is
        created from it by the database.

        Returns:
            dict: user_id, email, email_sent and message.

        Raises:
            ValidationError: If the email is taken or rejected.
            RemoteOperationError: For any other auth failure.
        """
        try:
            response = self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {
                        "email_redirect_to": self.settings.auth_callback_url,
                        "data": {
                            "first_name": first_name,
                            "last_name": last_name,
                            "username": username,
                        },
                    },
                }
            )
        except Exception as e:
            error_msg = str(e)
            logger.error("Signup failed: %s", error_msg)

            lowered = error_msg.lower()
            if "already registered" in lowered or "already exists" in lowered:
                raise ValidationError.from_field_errors(
                    {"email": "An account with this email already exists"}
                ) from e
            if "invalid" in lowered and "email" in lowered:
                raise ValidationError.from_field_errors({"email": "Invalid email address"}) from e
            if "password" in lowered and "weak" in lowered:
                raise ValidationError.from_field_errors(
                    {"password": "Password is too weak. Please use a stronger password."}
                ) from e
            raise RemoteOperationError("Failed to create account") from e

        if not response.user:
            raise RemoteOperationError("Failed to create account")

        user = response.user
        logger.info("User signed up: %s", user.id)
        return {
            "user_id": str(user.id),
            "email": user.email or email,
            "email_sent": response.session is None,
            "message": "Account created. Please check your email to verify your account.",
        }

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Sign in with email and password.

        Returns:
            dict: access_token, refresh_token, user_id, email, expires_in.

        Raises:
            AuthenticationError: If the credentials are rejected.
            RemoteOperationError: For any other auth failure.
        """
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            error_msg = str(e)
            logger.error("Login failed: %s", error_msg)

            lowered = error_msg.lower()
            if "invalid" in lowered and "credentials" in lowered:
                raise AuthenticationError("Invalid email or password") from e
            if "email not confirmed" in lowered or "not verified" in lowered:
                raise AuthenticationError("Please verify your email before logging in") from e
            raise RemoteOperationError("Failed to sign in") from e

        if not response.user or not response.session:
            raise AuthenticationError("Invalid email or password")

        logger.info("User logged in: %s", response.user.id)
        return self._session_payload(response, email)

    async def sign_out(self, access_token: str) -> bool:
        """Revoke the user's session.

        A failed revocation is logged and reported as False; the caller
        still drops its local session state.
        """
        try:
            self.client.auth.admin.sign_out(access_token)
        except Exception as e:
            logger.error("Logout failed: %s", e)
            return False

        logger.info("User logged out")
        return True

    async def send_magic_link(self, email: str) -> None:
        """Email a one-time sign-in link.

        Raises:
            RemoteOperationError: If the link could not be sent.
        """
        try:
            self.client.auth.sign_in_with_otp(
                {
                    "email": email,
                    "options": {"email_redirect_to": self.settings.auth_callback_url},
                }
            )
        except Exception as e:
            logger.error("Magic link request failed: %s", e)
            raise RemoteOperationError("Failed to send magic link") from e

        logger.info("Magic link sent")

    async def reset_password(self, email: str) -> dict[str, Any]:
        """Request a password reset email.

        Always reports success so the response does not reveal whether
        an account exists.
        """
        try:
            self.client.auth.reset_password_for_email(
                email,
                options={"redirect_to": self.settings.password_reset_url},
            )
            logger.info("Password reset email requested")
        except Exception as e:
            logger.error("Password reset request failed: %s", e)

        return {"email_sent": True, "message": PASSWORD_RESET_MESSAGE}

    async def update_credential(self, user_id: UUID, new_password: str) -> None:
        """Set a new password for an already authenticated user.

        Raises:
            RemoteOperationError: If the auth collaborator rejects the change.
        """
        try:
            response = self.client.auth.admin.update_user_by_id(
                str(user_id),
                {"password": new_password},
            )
        except Exception as e:
            error_msg = str(e)
            logger.error("Password update failed for %s: %s", user_id, error_msg)

            lowered = error_msg.lower()
            if "different from the old password" in lowered:
                raise RemoteOperationError("New password must be different from the current password") from e
            if "weak" in lowered:
                raise RemoteOperationError("New password is too weak. Please use a stronger password.") from e
            raise RemoteOperationError("Failed to update password") from e

        if not response or not response.user:
            raise RemoteOperationError("Failed to update password")

        logger.info("Password changed for user %s", user_id)

    async def get_current_user(self, access_token: str) -> Any | None:
        """Look up the user behind an access token.

        Returns:
            The auth user, or None if the token does not identify one.
        """
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Current user lookup failed: %s", e)
            return None

        return response.user if response else None

    async def verify_token_hash(self, token_hash: str, token_type: str = "email") -> dict[str, Any]:
        """Exchange an emailed token hash (magic link, signup confirmation) for a session.

        Raises:
            AuthenticationError: If the token is invalid or expired.
        """
        try:
            response = self.client.auth.verify_otp({"token_hash": token_hash, "type": token_type})
        except Exception as e:
            logger.error("Token verification failed: %s", e)
            raise AuthenticationError("Invalid or expired link") from e

        if not response.user or not response.session:
            raise AuthenticationError("Invalid or expired link")

        logger.info("Email link verified for user %s", response.user.id)
        return self._session_payload(response, response.user.email or "")

    @staticmethod
    def _session_payload(response: Any, email: str) -> dict[str, Any]:
        session = response.session
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user_id": str(response.user.id),
            "email": response.user.email or email,
            "expires_in": session.expires_in or 3600,
        }
