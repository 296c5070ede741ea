"""Wire models for inbound notification events (camelCase JSON)."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.domain.entities import (
    EVENT_TYPES,
    REPORT_TYPES,
    FailingTest,
    NotificationEvent,
    NotificationEventPayload,
    ReportPeriod,
    ReportStats,
    ReportTrends,
    SummaryReportData,
)
from app.domain.errors import InvalidNotificationEventError
from app.utils import ensure_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportPeriodModel(CamelModel):
    start_date: datetime
    end_date: datetime


class ReportStatsModel(CamelModel):
    total_executions: int = Field(..., ge=0)
    pass_rate: float = 0.0
    fail_rate: float = 0.0
    error_rate: float = 0.0
    average_duration: int = 0


class FailingTestModel(CamelModel):
    test_case_id: str
    test_name: str
    failure_count: int = Field(..., ge=0)
    last_failure: datetime | None = None


class ReportTrendsModel(CamelModel):
    execution_change: float = 0.0
    pass_rate_change: float = 0.0


class SummaryReportModel(CamelModel):
    report_type: str
    period: ReportPeriodModel
    stats: ReportStatsModel
    top_failing_tests: list[FailingTestModel] = Field(default_factory=list)
    trends: ReportTrendsModel = Field(default_factory=ReportTrendsModel)

    @field_validator("report_type")
    @classmethod
    def _known_report_type(cls, value: str) -> str:
        if value not in REPORT_TYPES:
            raise ValueError(f"reportType must be one of {', '.join(REPORT_TYPES)}")
        return value

    def to_domain(self) -> SummaryReportData:
        return SummaryReportData(
            report_type=self.report_type,
            period=ReportPeriod(
                start_date=ensure_utc(self.period.start_date),
                end_date=ensure_utc(self.period.end_date),
            ),
            stats=ReportStats(**self.stats.model_dump()),
            top_failing_tests=tuple(
                FailingTest(
                    test_case_id=item.test_case_id,
                    test_name=item.test_name,
                    failure_count=item.failure_count,
                    last_failure=ensure_utc(item.last_failure),
                )
                for item in self.top_failing_tests
            ),
            trends=ReportTrends(**self.trends.model_dump()),
        )


class NotificationPayloadModel(CamelModel):
    """Event details. Unknown keys are kept and exposed as extra payload data."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    project_id: str = Field(..., min_length=1)
    triggered_by: str = Field(..., min_length=1)
    execution_id: str | None = None
    test_case_id: str | None = None
    test_suite_id: str | None = None
    status: str | None = None
    result: str | None = None
    duration: int | None = Field(default=None, ge=0)
    error_message: str | None = None
    screenshots: list[str] = Field(default_factory=list)
    report_data: SummaryReportModel | None = None
    recipient_email: str | None = None
    recipient_phone: str | None = None
    slack_webhook: str | None = None
    webhook_url: str | None = None

    def to_domain(self) -> NotificationEventPayload:
        return NotificationEventPayload(
            project_id=self.project_id,
            triggered_by=self.triggered_by,
            execution_id=self.execution_id,
            test_case_id=self.test_case_id,
            test_suite_id=self.test_suite_id,
            status=self.status,
            result=self.result,
            duration=self.duration,
            error_message=self.error_message,
            screenshots=tuple(self.screenshots),
            report_data=self.report_data.to_domain() if self.report_data else None,
            recipient_email=self.recipient_email,
            recipient_phone=self.recipient_phone,
            slack_webhook=self.slack_webhook,
            webhook_url=self.webhook_url,
            extra=dict(self.model_extra or {}),
        )


class NotificationEventIn(CamelModel):
    event_type: str
    event_id: str = Field(..., min_length=1)
    timestamp: datetime
    payload: NotificationPayloadModel

    @field_validator("event_type")
    @classmethod
    def _known_event_type(cls, value: str) -> str:
        if value not in EVENT_TYPES:
            raise ValueError(f"eventType must be one of {', '.join(EVENT_TYPES)}")
        return value

    def to_domain(self) -> NotificationEvent:
        return NotificationEvent(
            event_type=self.event_type,
            event_id=self.event_id,
            timestamp=ensure_utc(self.timestamp),
            payload=self.payload.to_domain(),
        )


def parse_notification_event(
    raw: str | bytes | dict[str, Any], *, message_id: str | None = None
) -> NotificationEvent:
    """Validate ``raw`` and convert it to a :class:`NotificationEvent`.

    Raises :class:`InvalidNotificationEventError` for malformed JSON or
    payloads that fail validation.
    """

    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except ValueError as exc:
        raise InvalidNotificationEventError(
            "Invalid notification event format: body is not valid JSON", message_id=message_id
        ) from exc
    if not isinstance(data, dict):
        raise InvalidNotificationEventError(
            "Invalid notification event format: expected a JSON object", message_id=message_id
        )
    try:
        return NotificationEventIn.model_validate(data).to_domain()
    except ValidationError as exc:
        raise InvalidNotificationEventError(
            f"Invalid notification event format: {exc.error_count()} validation error(s)",
            message_id=message_id,
        ) from exc


class ChannelResultRead(CamelModel):
    notification_id: str | None
    channel: str
    status: str
    delivery_method: str
    error_message: str | None = None


class NotificationEventAccepted(CamelModel):
    event_id: str
    results: list[ChannelResultRead]


__all__ = [
    "CamelModel",
    "ChannelResultRead",
    "NotificationEventAccepted",
    "NotificationEventIn",
    "NotificationPayloadModel",
    "SummaryReportModel",
    "parse_notification_event",
]
