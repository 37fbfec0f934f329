"""Notification preference model type definitions for database operations."""

from typing import TypedDict


class NotificationPreferences(TypedDict):
    """Row of the notification_preferences table, one per user."""

    user_id: str
    communication_emails: bool
    marketing_emails: bool
    social_emails: bool
    security_emails: bool
    push_notifications: str
    updated_at: str
