"""Feedback model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Feedback(TypedDict):
    """Row of the feedbacks table."""

    id: int
    user_id: UUID
    subject: str
    message: str
    attachment_url: str | None
    created_at: datetime


class FeedbackCreate(TypedDict, total=False):
    user_id: str
    subject: str
    message: str
    attachment_url: str | None
