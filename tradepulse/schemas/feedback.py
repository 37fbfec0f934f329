"""Feedback Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tradepulse.schemas.form import SubmissionResult


class FeedbackRecord(BaseModel):
    """A stored feedback entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(default=None, description="Feedback identifier")
    subject: str = Field(description="Feedback subject")
    message: str = Field(description="Feedback body")
    attachment_url: str | None = Field(default=None, description="Public URL of the attachment")
    created_at: datetime | None = Field(default=None, description="Submission timestamp")


class FeedbackSubmissionResponse(BaseModel):
    """Result of submitting the feedback form."""

    model_config = ConfigDict(from_attributes=True)

    message: str = Field(default="Feedback submitted successfully!", description="Status message")
    result: SubmissionResult = Field(description="Submission outcome")
