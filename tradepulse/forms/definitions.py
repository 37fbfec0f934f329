"""Schemas and upload policies for the dashboard forms."""

from datetime import date

from tradepulse.core.config import get_settings
from tradepulse.forms.preview import FilePolicy, SelectedFile
from tradepulse.forms.schema import (
    ConfirmsField,
    Email,
    FieldSpec,
    FormSchema,
    Length,
    OfType,
    OneOf,
    PasswordComplexity,
    Pattern,
    Required,
)

ATTACHMENT_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "application/pdf"})
ATTACHMENT_EXTENSIONS = ".jpg, .jpeg, .png, .webp, .pdf"

PUSH_NOTIFICATION_CHOICES = ("all", "mentions", "none")

PROFILE_SCHEMA = FormSchema(
    "profile",
    fields=[
        FieldSpec("email", rules=(Required(), Email()), read_only=True),
        FieldSpec(
            "first_name",
            rules=(Required("First name is required."), Length(max=100)),
            default="",
        ),
        FieldSpec(
            "last_name",
            rules=(Required("Last name is required."), Length(max=100)),
            default="",
        ),
        FieldSpec("dob", rules=(OfType(date, "Invalid date of birth."),)),
        FieldSpec("avatar_file", rules=(OfType(SelectedFile, "Invalid file."),), ephemeral=True),
        FieldSpec("new_password", rules=(PasswordComplexity(),), default="", secret=True, ephemeral=True),
        FieldSpec("confirm_password", default="", secret=True, ephemeral=True),
    ],
    cross_field_rules=[ConfirmsField(source="new_password", target="confirm_password")],
)

FEEDBACK_SCHEMA = FormSchema(
    "feedback",
    fields=[
        FieldSpec(
            "subject",
            rules=(
                Required("Subject must be at least 10 characters."),
                Length(min=10, message="Subject must be at least 10 characters."),
                Length(max=200),
            ),
            default="",
        ),
        FieldSpec(
            "message",
            rules=(
                Required("Message must be at least 10 characters."),
                Length(min=10, message="Message must be at least 10 characters."),
                Length(max=5000),
            ),
            default="",
        ),
        FieldSpec("attachment_file", rules=(OfType(SelectedFile, "Invalid file."),), ephemeral=True),
    ],
)

NOTIFICATIONS_SCHEMA = FormSchema(
    "notifications",
    fields=[
        FieldSpec("communication_emails", rules=(OfType(bool),), default=False),
        FieldSpec("marketing_emails", rules=(OfType(bool),), default=False),
        FieldSpec("social_emails", rules=(OfType(bool),), default=False),
        FieldSpec("security_emails", rules=(Required(), OfType(bool)), default=True),
        FieldSpec(
            "push_notifications",
            rules=(Required(), OneOf(PUSH_NOTIFICATION_CHOICES)),
            default="all",
        ),
    ],
)

SIGNUP_SCHEMA = FormSchema(
    "signup",
    fields=[
        FieldSpec("email", rules=(Required(), Email())),
        FieldSpec("password", rules=(Required("Password is required."), PasswordComplexity()), secret=True),
        FieldSpec("first_name", rules=(Required("First name is required."), Length(max=100))),
        FieldSpec("last_name", rules=(Required("Last name is required."), Length(max=100))),
        FieldSpec(
            "username",
            rules=(
                Required("Username is required."),
                Length(min=3, max=30, message="Username must be between 3 and 30 characters."),
                Pattern(r"^[A-Za-z0-9_.-]+$", "Username may only contain letters, numbers, '.', '_' and '-'."),
            ),
        ),
    ],
)

SIGNIN_SCHEMA = FormSchema(
    "signin",
    fields=[
        FieldSpec("email", rules=(Required(), Email())),
        FieldSpec("password", rules=(Required("Password is required."),), secret=True),
    ],
)

EMAIL_ONLY_SCHEMA = FormSchema(
    "email",
    fields=[FieldSpec("email", rules=(Required("Invalid email address"), Email()))],
)


def avatar_policy() -> FilePolicy:
    """Avatars: any image type up to the configured ceiling."""
    return FilePolicy(
        max_bytes=get_settings().avatar_max_bytes,
        allowed_prefix="image/",
        type_message="Please select a valid image file.",
    )


def attachment_policy() -> FilePolicy:
    """Feedback attachments: a fixed image/PDF allow-list up to the configured ceiling."""
    return FilePolicy(
        max_bytes=get_settings().attachment_max_bytes,
        allowed_types=ATTACHMENT_MIME_TYPES,
        type_message=f"Only {ATTACHMENT_EXTENSIONS} files are accepted.",
    )
