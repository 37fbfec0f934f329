"""Authentication schemas for JWT tokens, user context and auth requests."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated user context extracted from a verified JWT.

    ``access_token`` is the raw token the user was resolved from; it is
    kept for calls made on the user's behalf and never serialized.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role (e.g., 'authenticated')")
    access_token: str | None = Field(default=None, exclude=True, repr=False)


class TokenPayload(BaseModel):
    """JWT token payload structure for Supabase tokens."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")
    aud: str | None = Field(default=None, description="Audience - intended recipient")
    iss: str | None = Field(default=None, description="Issuer - token issuer URL")

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp)

    def to_user_context(self, access_token: str | None = None) -> UserContext:
        """Convert token payload to UserContext.

        Returns:
            UserContext: User context derived from token claims.
        """
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            role=self.role,
            access_token=access_token,
        )


class CurrentUserResponse(BaseModel):
    """The signed-in user as reported by the auth collaborator."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="User ID")
    email: str | None = Field(default=None, description="User email if available")
    role: str | None = Field(default=None, description="User role if available")
    email_confirmed: bool = Field(default=False, description="Whether the email address is verified")


class SignupRequest(BaseModel):
    """Request schema for user signup.

    Only shape is checked here; the signup form schema produces the
    user-facing field messages.
    """

    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="User's email address", max_length=255)
    password: str = Field(..., description="User's password", max_length=100)
    first_name: str = Field(default="", description="First name", max_length=100)
    last_name: str = Field(default="", description="Last name", max_length=100)
    username: str = Field(default="", description="Username", max_length=30)


class SignupResponse(BaseModel):
    """Response schema for user signup."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="Newly created user ID")
    email: str = Field(description="User's email address")
    message: str = Field(description="Success message")
    email_sent: bool = Field(description="Whether a verification email was sent")


class LoginRequest(BaseModel):
    """Request schema for user login."""

    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")


class LoginResponse(BaseModel):
    """Response schema for user login."""

    model_config = ConfigDict(from_attributes=True)

    access_token: str = Field(description="JWT access token")
    refresh_token: str | None = Field(default=None, description="Refresh token if available")
    user_id: str = Field(description="User ID")
    email: str = Field(description="User's email address")
    expires_in: int = Field(description="Token expiration time in seconds")


class EmailRequest(BaseModel):
    """Request carrying only an email address (magic link, password reset)."""

    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="User's email address", max_length=255)


class EmailSentResponse(BaseModel):
    """Response for flows that send an email."""

    model_config = ConfigDict(from_attributes=True)

    message: str = Field(description="Status message")
    email_sent: bool = Field(description="Whether the email was sent")
