"""Domain entities describing inbound notification events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

EVENT_TEST_COMPLETION = "test_completion"
EVENT_TEST_FAILURE = "test_failure"
EVENT_CRITICAL_ALERT = "critical_alert"
EVENT_SUMMARY_REPORT = "summary_report"

EVENT_TYPES = (
    EVENT_TEST_COMPLETION,
    EVENT_TEST_FAILURE,
    EVENT_CRITICAL_ALERT,
    EVENT_SUMMARY_REPORT,
)

REPORT_DAILY = "daily"
REPORT_WEEKLY = "weekly"
REPORT_MONTHLY = "monthly"

REPORT_TYPES = (REPORT_DAILY, REPORT_WEEKLY, REPORT_MONTHLY)


def is_critical_event(event_type: str) -> bool:
    """Return ``True`` when ``event_type`` bypasses preference gating."""

    return event_type == EVENT_CRITICAL_ALERT


@dataclass(frozen=True)
class ReportPeriod:
    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class ReportStats:
    total_executions: int
    pass_rate: float
    fail_rate: float
    error_rate: float
    average_duration: int


@dataclass(frozen=True)
class FailingTest:
    test_case_id: str
    test_name: str
    failure_count: int
    last_failure: datetime | None


@dataclass(frozen=True)
class ReportTrends:
    execution_change: float
    pass_rate_change: float


@dataclass(frozen=True)
class SummaryReportData:
    """Aggregated execution statistics carried by ``summary_report`` events."""

    report_type: str
    period: ReportPeriod
    stats: ReportStats
    top_failing_tests: tuple[FailingTest, ...] = ()
    trends: ReportTrends = ReportTrends(execution_change=0.0, pass_rate_change=0.0)


@dataclass(frozen=True)
class NotificationEventPayload:
    """Event details supplied by the producer of a notification event."""

    project_id: str
    triggered_by: str
    execution_id: str | None = None
    test_case_id: str | None = None
    test_suite_id: str | None = None
    status: str | None = None
    result: str | None = None
    duration: int | None = None
    error_message: str | None = None
    screenshots: tuple[str, ...] = ()
    report_data: SummaryReportData | None = None
    recipient_email: str | None = None
    recipient_phone: str | None = None
    slack_webhook: str | None = None
    webhook_url: str | None = None
    extra: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationEvent:
    """Immutable notification event consumed by the delivery pipeline."""

    event_type: str
    event_id: str
    timestamp: datetime
    payload: NotificationEventPayload

    @property
    def user_id(self) -> str:
        return self.payload.triggered_by

    @property
    def is_critical(self) -> bool:
        return is_critical_event(self.event_type)


__all__ = [
    "EVENT_TEST_COMPLETION",
    "EVENT_TEST_FAILURE",
    "EVENT_CRITICAL_ALERT",
    "EVENT_SUMMARY_REPORT",
    "EVENT_TYPES",
    "REPORT_DAILY",
    "REPORT_WEEKLY",
    "REPORT_MONTHLY",
    "REPORT_TYPES",
    "FailingTest",
    "NotificationEvent",
    "NotificationEventPayload",
    "ReportPeriod",
    "ReportStats",
    "ReportTrends",
    "SummaryReportData",
    "is_critical_event",
]
