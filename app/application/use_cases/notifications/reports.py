"""Periodic summary reports built from test execution records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.domain.entities import (
    EVENT_SUMMARY_REPORT,
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
)
from app.infrastructure.notifications import NotificationQueuePublisher
from app.utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

RESULT_PASS = "pass"
RESULT_FAIL = "fail"
RESULT_ERROR = "error"

REPORT_PERIODS: dict[str, timedelta] = {
    REPORT_DAILY: timedelta(days=1),
    REPORT_WEEKLY: timedelta(days=7),
    REPORT_MONTHLY: timedelta(days=30),
}
TOP_FAILING_LIMIT = 10
REPORT_USER = "system"
REPORT_PROJECT = "all"


@dataclass(frozen=True)
class ExecutionRecord:
    """A finished test execution as supplied to the report builder."""

    test_case_id: str | None
    result: str
    duration: int | None = None
    created_at: datetime | None = None
    end_time: datetime | None = None
    test_name: str | None = None


def report_period(report_type: str, *, now: datetime | None = None) -> ReportPeriod:
    if report_type not in REPORT_PERIODS:
        raise ValueError(f"Unknown report type '{report_type}'")
    end = ensure_utc(now) if now else now_utc()
    return ReportPeriod(start_date=end - REPORT_PERIODS[report_type], end_date=end)


def previous_period(report_type: str, current: ReportPeriod) -> ReportPeriod:
    """Return the period of equal length that ends where ``current`` starts."""

    return ReportPeriod(
        start_date=current.start_date - REPORT_PERIODS[report_type],
        end_date=current.start_date,
    )


def calculate_statistics(executions: Sequence[ExecutionRecord]) -> ReportStats:
    total = len(executions)
    if total == 0:
        return ReportStats(
            total_executions=0, pass_rate=0.0, fail_rate=0.0, error_rate=0.0, average_duration=0
        )

    def _rate(result: str) -> float:
        return sum(1 for execution in executions if execution.result == result) / total * 100

    total_duration = sum(execution.duration or 0 for execution in executions)
    return ReportStats(
        total_executions=total,
        pass_rate=_rate(RESULT_PASS),
        fail_rate=_rate(RESULT_FAIL),
        error_rate=_rate(RESULT_ERROR),
        average_duration=round(total_duration / total),
    )


def calculate_trends(current: ReportStats, previous: ReportStats) -> ReportTrends:
    """Compare two periods; changes against an empty previous period are zero."""

    execution_change = 0.0
    pass_rate_change = 0.0
    if previous.total_executions > 0:
        execution_change = (
            (current.total_executions - previous.total_executions)
            / previous.total_executions
            * 100
        )
    if previous.pass_rate > 0:
        pass_rate_change = current.pass_rate - previous.pass_rate
    return ReportTrends(
        execution_change=round(execution_change, 2),
        pass_rate_change=round(pass_rate_change, 2),
    )


def identify_top_failing_tests(
    executions: Iterable[ExecutionRecord], *, limit: int = TOP_FAILING_LIMIT
) -> tuple[FailingTest, ...]:
    counts: dict[str, int] = {}
    last_failures: dict[str, datetime | None] = {}
    names: dict[str, str] = {}

    for execution in executions:
        if execution.result not in (RESULT_FAIL, RESULT_ERROR) or not execution.test_case_id:
            continue
        key = execution.test_case_id
        counts[key] = counts.get(key, 0) + 1
        failed_at = ensure_utc(execution.end_time or execution.created_at)
        previous = last_failures.get(key)
        if previous is None or (failed_at is not None and failed_at > previous):
            last_failures[key] = failed_at
        if execution.test_name:
            names[key] = execution.test_name

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    return tuple(
        FailingTest(
            test_case_id=test_case_id,
            test_name=names.get(test_case_id, f"Test {test_case_id[:8]}"),
            failure_count=count,
            last_failure=last_failures.get(test_case_id),
        )
        for test_case_id, count in ranked
    )


def build_summary_report(
    report_type: str,
    executions: Sequence[ExecutionRecord],
    previous_executions: Sequence[ExecutionRecord] = (),
    *,
    now: datetime | None = None,
) -> SummaryReportData:
    """Aggregate ``executions`` for the period ending at ``now``.

    Executions are filtered to the current period, and previous executions to
    the period before it, before statistics are computed.
    """

    period = report_period(report_type, now=now)
    before = previous_period(report_type, period)
    current = [e for e in executions if _within(e, period)]
    prior = [e for e in previous_executions if _within(e, before)]

    stats = calculate_statistics(current)
    return SummaryReportData(
        report_type=report_type,
        period=period,
        stats=stats,
        top_failing_tests=identify_top_failing_tests(current),
        trends=calculate_trends(stats, calculate_statistics(prior)),
    )


def build_report_event(
    report: SummaryReportData,
    *,
    now: datetime | None = None,
    project_id: str = REPORT_PROJECT,
) -> NotificationEvent:
    timestamp = ensure_utc(now) if now else now_utc()
    return NotificationEvent(
        event_type=EVENT_SUMMARY_REPORT,
        event_id=f"report-{int(timestamp.timestamp() * 1000)}",
        timestamp=timestamp,
        payload=NotificationEventPayload(
            project_id=project_id,
            triggered_by=REPORT_USER,
            report_data=report,
        ),
    )


async def publish_summary_report(
    publisher: NotificationQueuePublisher,
    report_type: str,
    executions: Sequence[ExecutionRecord],
    previous_executions: Sequence[ExecutionRecord] = (),
    *,
    now: datetime | None = None,
) -> NotificationEvent:
    """Build the report and queue its ``summary_report`` event."""

    if report_type not in REPORT_TYPES:
        raise ValueError(f"Unknown report type '{report_type}'")
    report = build_summary_report(report_type, executions, previous_executions, now=now)
    event = build_report_event(report, now=now)
    await publisher.publish_event(event)
    logger.info(
        "Published %s summary report %s covering %s execution(s)",
        report_type,
        event.event_id,
        report.stats.total_executions,
    )
    return event


def _within(execution: ExecutionRecord, period: ReportPeriod) -> bool:
    created_at = ensure_utc(execution.created_at)
    if created_at is None:
        return True
    return period.start_date <= created_at <= period.end_date


__all__ = [
    "REPORT_PERIODS",
    "ExecutionRecord",
    "build_report_event",
    "build_summary_report",
    "calculate_statistics",
    "calculate_trends",
    "identify_top_failing_tests",
    "previous_period",
    "publish_summary_report",
    "report_period",
]
