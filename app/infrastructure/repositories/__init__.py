"""Repository implementations for infrastructure layer."""

from .notification_history_repository import (
    NotificationHistoryRepository,
    decode_cursor,
    encode_cursor,
)
from .notification_preferences_repository import NotificationPreferencesRepository
from .notification_template_repository import NotificationTemplateRepository

__all__ = [
    "NotificationHistoryRepository",
    "NotificationPreferencesRepository",
    "NotificationTemplateRepository",
    "decode_cursor",
    "encode_cursor",
]
