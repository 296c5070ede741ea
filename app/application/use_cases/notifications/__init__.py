"""Use cases of the notification delivery pipeline."""

from .default_templates import DEFAULT_TEMPLATES, seed_default_templates
from .history import (
    NOTIFICATION_NOT_FOUND,
    HistoryLedger,
    get_history_record,
    purge_expired_history,
    query_history,
)
from .preferences import (
    FrequencyCounter,
    HistoryFrequencyCounter,
    PreferenceEvaluator,
    get_preferences,
    update_preferences,
)
from .processor import NotificationProcessor, build_notification_processor, resolve_recipient
from .reports import (
    ExecutionRecord,
    build_report_event,
    build_summary_report,
    publish_summary_report,
)
from .templates import (
    TEMPLATE_NOT_FOUND,
    TemplateRenderer,
    build_render_context,
    create_notification_template,
    find_notification_template,
    get_notification_template,
    list_notification_templates,
    update_notification_template,
)

__all__ = [
    "DEFAULT_TEMPLATES",
    "seed_default_templates",
    "NOTIFICATION_NOT_FOUND",
    "HistoryLedger",
    "get_history_record",
    "purge_expired_history",
    "query_history",
    "FrequencyCounter",
    "HistoryFrequencyCounter",
    "PreferenceEvaluator",
    "get_preferences",
    "update_preferences",
    "NotificationProcessor",
    "build_notification_processor",
    "resolve_recipient",
    "ExecutionRecord",
    "build_report_event",
    "build_summary_report",
    "publish_summary_report",
    "TEMPLATE_NOT_FOUND",
    "TemplateRenderer",
    "build_render_context",
    "create_notification_template",
    "find_notification_template",
    "get_notification_template",
    "list_notification_templates",
    "update_notification_template",
]
