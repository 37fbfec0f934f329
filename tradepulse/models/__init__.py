"""Database model type definitions."""

from tradepulse.models.feedback import Feedback, FeedbackCreate
from tradepulse.models.notification import NotificationPreferences
from tradepulse.models.profile import Profile, ProfileUpdate

__all__ = [
    "Profile",
    "ProfileUpdate",
    "Feedback",
    "FeedbackCreate",
    "NotificationPreferences",
]
