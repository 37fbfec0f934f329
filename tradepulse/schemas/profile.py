"""Profile Pydantic schemas for API request/response models."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from tradepulse.schemas.form import FormSnapshot, SubmissionResult


class ProfileRecord(BaseModel):
    """A user's profile as confirmed by the profile store.

    Instances are frozen: a newer record replaces an older one wholesale.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, populate_by_name=True)

    user_id: UUID = Field(description="Associated auth user ID")
    email: str = Field(description="User email address (immutable)")
    first_name: str | None = Field(default=None, max_length=100, description="First name")
    last_name: str | None = Field(default=None, max_length=100, description="Last name")
    username: str | None = Field(default=None, description="Username chosen at sign up")
    dob: date | None = Field(default=None, description="Date of birth")
    avatar_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("avatar", "avatar_url"),
        description="Public URL of the user's avatar image",
    )
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")

    def form_values(self) -> dict[str, Any]:
        """Values the profile form is seeded with."""
        return {
            "email": self.email,
            "first_name": self.first_name or "",
            "last_name": self.last_name or "",
            "dob": self.dob,
        }


class ProfileFieldsUpdate(BaseModel):
    """Fields written to the profile store in a single update call."""

    model_config = ConfigDict(from_attributes=True)

    first_name: str = Field(max_length=100, description="First name")
    last_name: str = Field(max_length=100, description="Last name")
    dob: date | None = Field(default=None, description="Date of birth")
    avatar_url: str | None = Field(default=None, description="Public URL of the avatar")


class ProfileFormUpdate(BaseModel):
    """Partial edit of the profile form draft.

    Only fields present in the request body are applied, in declaration order.
    """

    model_config = ConfigDict(from_attributes=True)

    email: str | None = Field(default=None, description="Read-only; present only to be rejected")
    first_name: str | None = Field(default=None, description="First name")
    last_name: str | None = Field(default=None, description="Last name")
    dob: date | None = Field(default=None, description="Date of birth")
    new_password: str | None = Field(default=None, description="New password (optional)")
    confirm_password: str | None = Field(default=None, description="Repeat of the new password")


class ProfileFormResponse(BaseModel):
    """Profile form state plus the currently persisted record."""

    model_config = ConfigDict(from_attributes=True)

    form: FormSnapshot = Field(description="Current form state")
    profile: ProfileRecord = Field(description="Persisted profile")


class ProfileSubmissionResponse(BaseModel):
    """Result of submitting the profile form."""

    model_config = ConfigDict(from_attributes=True)

    result: SubmissionResult = Field(description="Submission outcome")
    form: FormSnapshot = Field(description="Form state after the submission")
    profile: ProfileRecord | None = Field(default=None, description="Refreshed profile on success")
