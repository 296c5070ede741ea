from .notification_event import (
    ChannelResultRead,
    NotificationEventAccepted,
    NotificationEventIn,
    NotificationPayloadModel,
    SummaryReportModel,
    parse_notification_event,
)
from .notification_history import NotificationHistoryPageRead, NotificationHistoryRead
from .notification_preferences import (
    ContactDetailsSchema,
    EventPreferenceSchema,
    EventPreferenceUpdate,
    FrequencyLimitSchema,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    QuietHoursSchema,
    SlackWebhookSchema,
)
from .notification_template import (
    NotificationTemplateCreate,
    NotificationTemplateRead,
    NotificationTemplateUpdate,
)

__all__ = [
    "ChannelResultRead",
    "NotificationEventAccepted",
    "NotificationEventIn",
    "NotificationPayloadModel",
    "SummaryReportModel",
    "parse_notification_event",
    "NotificationHistoryPageRead",
    "NotificationHistoryRead",
    "ContactDetailsSchema",
    "EventPreferenceSchema",
    "EventPreferenceUpdate",
    "FrequencyLimitSchema",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "QuietHoursSchema",
    "SlackWebhookSchema",
    "NotificationTemplateCreate",
    "NotificationTemplateRead",
    "NotificationTemplateUpdate",
]
