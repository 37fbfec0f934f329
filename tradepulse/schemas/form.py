"""Form state, preview and submission schemas shared by all dashboard forms."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FormState(str, Enum):
    """Lifecycle of a form instance.

    IDLE -> EDITING -> SUBMITTING -> (SUCCEEDED | FAILED) -> IDLE / EDITING
    """

    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FilePreview(BaseModel):
    """Ephemeral description of a selected file for instant display."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(description="Original file name")
    mime_type: str = Field(description="Declared MIME type")
    size_bytes: int = Field(description="File size in bytes")
    preview_payload: str | None = Field(
        default=None, description="Inline data URL for images, null for other types"
    )


class SubmissionResult(BaseModel):
    """Outcome of one submit attempt. Produced once per attempt, never persisted."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(description="Whether every step of the submission succeeded")
    error_message: str | None = Field(default=None, description="User-facing error message")
    field_errors: dict[str, str] = Field(
        default_factory=dict, description="Validation errors keyed by field name"
    )
    completed_steps: list[str] = Field(
        default_factory=list, description="Side effects that were applied, in order"
    )
    failed_step: str | None = Field(default=None, description="Step that stopped the submission")
    record: dict[str, Any] | None = Field(
        default=None, description="Confirmed record produced by the submission"
    )


class FormSnapshot(BaseModel):
    """Renderable view of a form instance. Secret fields are never included."""

    model_config = ConfigDict(from_attributes=True)

    form: str = Field(description="Form name")
    state: FormState = Field(description="Current lifecycle state")
    values: dict[str, Any] = Field(default_factory=dict, description="Draft values (secrets omitted)")
    errors: dict[str, str] = Field(default_factory=dict, description="Errors for touched fields")
    touched: list[str] = Field(default_factory=list, description="Fields the user has interacted with")
    form_error: str | None = Field(default=None, description="Error from the last failed submission")
    preview: FilePreview | None = Field(default=None, description="Pending upload preview, if any")
    displayed_file: str | None = Field(
        default=None, description="What the upload field shows: preview payload or persisted URL"
    )
