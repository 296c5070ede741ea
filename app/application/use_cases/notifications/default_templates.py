"""Built-in template catalogue and the seeding use case."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_SLACK,
    CHANNEL_SMS,
    CHANNEL_WEBHOOK,
    EVENT_CRITICAL_ALERT,
    EVENT_SUMMARY_REPORT,
    EVENT_TEST_COMPLETION,
    EVENT_TEST_FAILURE,
    FORMAT_HTML,
    FORMAT_JSON,
    FORMAT_SLACK_BLOCKS,
    FORMAT_TEXT,
    NotificationTemplate,
)
from app.infrastructure.repositories import NotificationTemplateRepository

from .templates import create_notification_template

logger = logging.getLogger(__name__)

_FOOTER = "This is an automated notification from the test execution service."


@dataclass(frozen=True)
class DefaultTemplate:
    event_type: str
    channel: str
    format: str
    body: str
    subject: str | None = None


def _html(title: str, intro: str, rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td><strong>{label}:</strong></td><td>{{{{{name}}}}}</td></tr>"
        for label, name in rows
    )
    return (
        "<html><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        f"<h2>{title}</h2><p>{intro}</p>"
        f"<table cellpadding=\"6\" border=\"1\" style=\"border-collapse: collapse;\">{cells}</table>"
        f"<p style=\"color: #666; font-size: 12px;\">{_FOOTER}</p>"
        "</body></html>"
    )


def _slack(header: str, fields: list[tuple[str, str]]) -> str:
    return json.dumps(
        [
            {"type": "header", "text": {"type": "plain_text", "text": header}},
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*{label}:*\n{{{{{name}}}}}"}
                    for label, name in fields
                ],
            },
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": "Execution ID: {{executionId}} | {{timestamp}}"}
                ],
            },
        ],
        indent=2,
    )


DEFAULT_TEMPLATES: tuple[DefaultTemplate, ...] = (
    DefaultTemplate(
        event_type=EVENT_TEST_COMPLETION,
        channel=CHANNEL_EMAIL,
        format=FORMAT_HTML,
        subject="Test Completed: {{testName}}",
        body=_html(
            "Test Completed",
            "Your test execution has completed.",
            [
                ("Test Name", "testName"),
                ("Execution ID", "executionId"),
                ("Status", "status"),
                ("Result", "result"),
                ("Duration", "duration"),
                ("Timestamp", "timestamp"),
            ],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_FAILURE,
        channel=CHANNEL_EMAIL,
        format=FORMAT_HTML,
        subject="Test Failed: {{testName}}",
        body=_html(
            "Test Failed",
            "Your test execution has failed. Please review the details below.",
            [
                ("Test Name", "testName"),
                ("Execution ID", "executionId"),
                ("Status", "status"),
                ("Result", "result"),
                ("Duration", "duration"),
                ("Error", "errorMessage"),
                ("Screenshots", "screenshotUrls"),
                ("Timestamp", "timestamp"),
            ],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_CRITICAL_ALERT,
        channel=CHANNEL_EMAIL,
        format=FORMAT_HTML,
        subject="CRITICAL ALERT: {{testName}}",
        body=_html(
            "CRITICAL ALERT",
            "A critical test failure requires immediate attention.",
            [
                ("Test Name", "testName"),
                ("Execution ID", "executionId"),
                ("Project", "projectName"),
                ("Status", "status"),
                ("Error", "errorMessage"),
                ("Timestamp", "timestamp"),
            ],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_SUMMARY_REPORT,
        channel=CHANNEL_EMAIL,
        format=FORMAT_HTML,
        subject="Test Execution Summary Report",
        body=_html(
            "Test Execution Summary Report",
            "Here is your test execution summary for the reporting period.",
            [("Project", "projectName"), ("Report", "reportData")],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_FAILURE,
        channel=CHANNEL_SMS,
        format=FORMAT_TEXT,
        body='Test "{{testName}}" failed: {{errorMessage}}',
    ),
    DefaultTemplate(
        event_type=EVENT_CRITICAL_ALERT,
        channel=CHANNEL_SMS,
        format=FORMAT_TEXT,
        body='CRITICAL: Test "{{testName}}" failed. Error: {{errorMessage}}. Check the dashboard immediately.',
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_FAILURE,
        channel=CHANNEL_SLACK,
        format=FORMAT_SLACK_BLOCKS,
        body=_slack(
            "Test Failed",
            [
                ("Test Name", "testName"),
                ("Status", "status"),
                ("Result", "result"),
                ("Duration", "duration"),
                ("Error", "errorMessage"),
            ],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_CRITICAL_ALERT,
        channel=CHANNEL_SLACK,
        format=FORMAT_SLACK_BLOCKS,
        body=_slack(
            "Critical Alert",
            [
                ("Test Name", "testName"),
                ("Project", "projectName"),
                ("Error", "errorMessage"),
            ],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_COMPLETION,
        channel=CHANNEL_SLACK,
        format=FORMAT_SLACK_BLOCKS,
        body=_slack(
            "Test Completed",
            [("Test Name", "testName"), ("Result", "result"), ("Duration", "duration")],
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_FAILURE,
        channel=CHANNEL_WEBHOOK,
        format=FORMAT_JSON,
        body=(
            '{"testName":"{{testName}}","executionId":"{{executionId}}",'
            '"status":"{{status}}","errorMessage":"{{errorMessage}}"}'
        ),
    ),
    DefaultTemplate(
        event_type=EVENT_TEST_COMPLETION,
        channel=CHANNEL_WEBHOOK,
        format=FORMAT_JSON,
        body=(
            '{"testName":"{{testName}}","executionId":"{{executionId}}",'
            '"result":"{{result}}","duration":"{{duration}}"}'
        ),
    ),
)


def seed_default_templates(session: Session) -> list[NotificationTemplate]:
    """Store every catalogue template whose (event type, channel) slot is free.

    Existing templates are left untouched, so running this twice is harmless.
    """

    repository = NotificationTemplateRepository(session)
    created: list[NotificationTemplate] = []
    for default in DEFAULT_TEMPLATES:
        if repository.get_by_event_and_channel(default.event_type, default.channel):
            logger.debug(
                "Template for %s/%s already exists; skipping", default.event_type, default.channel
            )
            continue
        created.append(
            create_notification_template(
                session,
                event_type=default.event_type,
                channel=default.channel,
                format=default.format,
                subject=default.subject,
                body=default.body,
            )
        )
    logger.info("Seeded %s default notification template(s)", len(created))
    return created


__all__ = ["DEFAULT_TEMPLATES", "DefaultTemplate", "seed_default_templates"]
