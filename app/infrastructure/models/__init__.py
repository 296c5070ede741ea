"""ORM models used by the application infrastructure."""

from .notification_history import NotificationHistoryModel
from .notification_preferences import NotificationPreferencesModel
from .notification_template import NotificationTemplateModel

__all__ = [
    "NotificationHistoryModel",
    "NotificationPreferencesModel",
    "NotificationTemplateModel",
]
