"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Profile(TypedDict):
    """Row of the profiles table.

    One row per auth user, created by a database trigger at sign up from
    the user metadata (first_name, last_name, username).
    """

    id: int
    user_id: UUID
    email: str
    first_name: str | None
    last_name: str | None
    username: str | None
    dob: str | None
    avatar: str | None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(TypedDict, total=False):
    """Columns the profile form may write. All optional for partial updates."""

    first_name: str
    last_name: str
    dob: str | None
    avatar: str | None
    updated_at: str
