"""Domain entities exposed by the application."""

from .delivery import (
    ChannelResult,
    DeliveryOutcome,
    PolicyDecision,
    RelayResult,
    RetryConfig,
    RetryResult,
)
from .notification_event import (
    EVENT_CRITICAL_ALERT,
    EVENT_SUMMARY_REPORT,
    EVENT_TEST_COMPLETION,
    EVENT_TEST_FAILURE,
    EVENT_TYPES,
    REPORT_DAILY,
    REPORT_MONTHLY,
    REPORT_TYPES,
    REPORT_WEEKLY,
    FailingTest,
    NotificationEvent,
    NotificationEventPayload,
    ReportPeriod,
    ReportStats,
    ReportTrends,
    SummaryReportData,
    is_critical_event,
)
from .notification_history import (
    DELIVERY_METHOD_DIRECT,
    DELIVERY_METHOD_FALLBACK,
    DELIVERY_METHOD_RELAY,
    DELIVERY_METHODS,
    DELIVERY_STATUS_DELIVERED,
    DELIVERY_STATUS_FAILED,
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUS_SENT,
    DELIVERY_STATUS_SUPPRESSED,
    DELIVERY_STATUSES,
    HistoryPage,
    HistoryQuery,
    NotificationHistoryRecord,
)
from .notification_preferences import (
    SUMMARY_FREQUENCIES,
    ContactDetails,
    EventPreference,
    FrequencyLimit,
    NotificationPreferences,
    QuietHours,
    SlackWebhook,
    default_preferences,
)
from .notification_template import (
    CHANNEL_EMAIL,
    CHANNEL_FORMATS,
    CHANNEL_SLACK,
    CHANNEL_SMS,
    CHANNEL_WEBHOOK,
    CHANNELS,
    FORMAT_HTML,
    FORMAT_JSON,
    FORMAT_SLACK_BLOCKS,
    FORMAT_TEXT,
    TEMPLATE_FORMATS,
    NotificationTemplate,
    RenderedNotification,
)

__all__ = [
    "ChannelResult",
    "DeliveryOutcome",
    "PolicyDecision",
    "RelayResult",
    "RetryConfig",
    "RetryResult",
    "EVENT_CRITICAL_ALERT",
    "EVENT_SUMMARY_REPORT",
    "EVENT_TEST_COMPLETION",
    "EVENT_TEST_FAILURE",
    "EVENT_TYPES",
    "REPORT_DAILY",
    "REPORT_MONTHLY",
    "REPORT_TYPES",
    "REPORT_WEEKLY",
    "FailingTest",
    "NotificationEvent",
    "NotificationEventPayload",
    "ReportPeriod",
    "ReportStats",
    "ReportTrends",
    "SummaryReportData",
    "is_critical_event",
    "DELIVERY_METHOD_DIRECT",
    "DELIVERY_METHOD_FALLBACK",
    "DELIVERY_METHOD_RELAY",
    "DELIVERY_METHODS",
    "DELIVERY_STATUS_DELIVERED",
    "DELIVERY_STATUS_FAILED",
    "DELIVERY_STATUS_PENDING",
    "DELIVERY_STATUS_SENT",
    "DELIVERY_STATUS_SUPPRESSED",
    "DELIVERY_STATUSES",
    "HistoryPage",
    "HistoryQuery",
    "NotificationHistoryRecord",
    "SUMMARY_FREQUENCIES",
    "ContactDetails",
    "EventPreference",
    "FrequencyLimit",
    "NotificationPreferences",
    "QuietHours",
    "SlackWebhook",
    "default_preferences",
    "CHANNEL_EMAIL",
    "CHANNEL_FORMATS",
    "CHANNEL_SLACK",
    "CHANNEL_SMS",
    "CHANNEL_WEBHOOK",
    "CHANNELS",
    "FORMAT_HTML",
    "FORMAT_JSON",
    "FORMAT_SLACK_BLOCKS",
    "FORMAT_TEXT",
    "TEMPLATE_FORMATS",
    "NotificationTemplate",
    "RenderedNotification",
]
