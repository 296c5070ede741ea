"""Utility script to build a summary report and queue its notification event.

Execution records are read from a JSON file holding a list of objects with
``testCaseId``, ``result``, ``duration``, ``createdAt``, ``endTime`` and an
optional ``testName``.
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import anyio

from app.application.use_cases.notifications import ExecutionRecord, publish_summary_report
from app.config import get_settings
from app.domain.entities import REPORT_TYPES
from app.infrastructure.log_config import configure_logging
from app.infrastructure.notifications import NotificationQueuePublisher


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish a summary_report event.")
    parser.add_argument("--type", dest="report_type", choices=REPORT_TYPES, default="daily")
    parser.add_argument(
        "--executions",
        type=Path,
        required=True,
        help="JSON file with executions of the current and previous periods",
    )
    return parser.parse_args(argv)


def _parse_datetime(value: Any) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def load_executions(path: Path) -> list[ExecutionRecord]:
    items = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(items, list):
        raise ValueError("Executions file must contain a JSON list")
    return [
        ExecutionRecord(
            test_case_id=item.get("testCaseId"),
            result=str(item.get("result", "")),
            duration=item.get("duration"),
            created_at=_parse_datetime(item.get("createdAt")),
            end_time=_parse_datetime(item.get("endTime")),
            test_name=item.get("testName"),
        )
        for item in items
    ]


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.notification_queue_url:
        raise SystemExit("NOTIFICATION_QUEUE_URL is required to publish reports")

    try:
        executions = load_executions(args.executions)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Could not read executions: {exc}") from exc

    publisher = NotificationQueuePublisher(
        queue_url=settings.notification_queue_url, region=settings.aws_region
    )
    # One list covers both periods; the builder splits them by creation time.
    event = anyio.run(
        publish_summary_report, publisher, args.report_type, executions, executions
    )
    print(f"Queued {event.event_id}")


if __name__ == "__main__":
    main()
