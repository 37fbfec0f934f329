"""Notification preference schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationPreferencesSchema(BaseModel):
    """Per-user notification settings."""

    model_config = ConfigDict(from_attributes=True)

    communication_emails: bool = Field(default=False, description="Emails about account activity")
    marketing_emails: bool = Field(default=False, description="Emails about new products and features")
    social_emails: bool = Field(default=False, description="Emails for friend requests and follows")
    security_emails: bool = Field(default=True, description="Emails about account security")
    push_notifications: Literal["all", "mentions", "none"] = Field(
        default="all", description="Which events trigger push notifications"
    )


class NotificationPreferencesUpdate(BaseModel):
    """Partial update of notification settings.

    Values are loosely typed here so the form schema produces the
    field-level messages instead of request parsing.
    """

    model_config = ConfigDict(from_attributes=True)

    communication_emails: bool | None = None
    marketing_emails: bool | None = None
    social_emails: bool | None = None
    security_emails: bool | None = None
    push_notifications: str | None = None
