"""Template rendering and the template administration use cases."""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import asdict, is_dataclass, replace
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.entities import (
    CHANNEL_FORMATS,
    CHANNELS,
    EVENT_TYPES,
    NotificationEvent,
    NotificationTemplate,
    RenderedNotification,
)
from app.infrastructure.repositories import NotificationTemplateRepository
from app.utils import now_utc

_PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")
_ANY_PLACEHOLDER_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

TEMPLATE_NOT_FOUND = "Template not found"


def format_context_value(value: Any) -> str:
    """Return the textual form of a render context value."""

    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def extract_variables(*texts: str | None) -> list[str]:
    """Return the distinct placeholder names used in ``texts`` in order of appearance."""

    names: list[str] = []
    for text in texts:
        for name in _PLACEHOLDER_PATTERN.findall(text or ""):
            if name not in names:
                names.append(name)
    return names


class TemplateRenderer:
    """Substitute ``{{name}}`` placeholders and validate template definitions."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def render_text(self, text: str | None, context: Mapping[str, Any]) -> str:
        if not text:
            return ""

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            value = context.get(name)
            if value is None:
                self._logger.warning(
                    "Template variable '%s' not found in context, using empty string", name
                )
                return ""
            return format_context_value(value)

        return _PLACEHOLDER_PATTERN.sub(_substitute, text)

    def render(self, template: NotificationTemplate, context: Mapping[str, Any]) -> str:
        return self.render_text(template.body, context)

    def render_notification(
        self, template: NotificationTemplate, context: Mapping[str, Any]
    ) -> RenderedNotification:
        """Render both subject and body of ``template``."""

        subject = self.render_text(template.subject, context) if template.subject else None
        return RenderedNotification(
            channel=template.channel,
            format=template.format,
            body=self.render(template, context),
            subject=subject,
        )

    def validation_errors(self, template: NotificationTemplate) -> list[str]:
        errors: list[str] = []
        if not template.body or not template.body.strip():
            errors.append("Template body is required")
        for label, text in (("body", template.body), ("subject", template.subject)):
            if not text:
                continue
            if text.count("{{") != text.count("}}"):
                errors.append(f"Template {label} has unbalanced braces")
            invalid = [
                name for name in _ANY_PLACEHOLDER_PATTERN.findall(text)
                if not _IDENTIFIER_PATTERN.match(name)
            ]
            if invalid:
                errors.append(
                    f"Template {label} has invalid variable names: {', '.join(invalid)}"
                )
        if template.event_type not in EVENT_TYPES:
            errors.append(f"Unknown event type '{template.event_type}'")
        allowed_formats = CHANNEL_FORMATS.get(template.channel)
        if allowed_formats is None:
            errors.append(f"Unsupported channel '{template.channel}'")
        elif template.format not in allowed_formats:
            errors.append(
                f"{template.channel} templates must use "
                f"{' or '.join(sorted(allowed_formats))} format"
            )
        return errors

    def validate(self, template: NotificationTemplate) -> bool:
        errors = self.validation_errors(template)
        for error in errors:
            self._logger.error("Invalid template: %s", error)
        return not errors


def build_render_context(event: NotificationEvent) -> dict[str, Any]:
    """Return the placeholder values available to templates for ``event``."""

    payload = event.payload
    return {
        "testName": payload.test_case_id,
        "testCaseId": payload.test_case_id,
        "executionId": payload.execution_id,
        "status": payload.status,
        "result": payload.result,
        "duration": f"{payload.duration}ms" if payload.duration is not None else None,
        "timestamp": event.timestamp.isoformat(),
        "errorMessage": payload.error_message,
        "screenshotUrls": list(payload.screenshots) if payload.screenshots else None,
        "userName": payload.triggered_by,
        "projectName": payload.project_id,
        "reportData": payload.report_data,
    }


def list_notification_templates(
    session: Session,
    *,
    event_type: str | None = None,
    channel: str | None = None,
) -> Sequence[NotificationTemplate]:
    return NotificationTemplateRepository(session).list(event_type=event_type, channel=channel)


def get_notification_template(session: Session, template_id: str) -> NotificationTemplate:
    """Return the template identified by ``template_id`` or raise an error."""

    template = NotificationTemplateRepository(session).get(template_id)
    if template is None:
        raise ValueError(TEMPLATE_NOT_FOUND)
    return template


def find_notification_template(
    session: Session, event_type: str, channel: str
) -> NotificationTemplate | None:
    return NotificationTemplateRepository(session).get_by_event_and_channel(event_type, channel)


def create_notification_template(
    session: Session,
    *,
    event_type: str,
    channel: str,
    format: str,
    body: str,
    subject: str | None = None,
    variables: Sequence[str] | None = None,
) -> NotificationTemplate:
    """Validate and store a new template.

    Only one template may exist per event type and channel.
    """

    repository = NotificationTemplateRepository(session)
    now = now_utc()
    template = NotificationTemplate(
        template_id=str(uuid.uuid4()),
        event_type=event_type,
        channel=channel,
        format=format,
        subject=subject,
        body=body,
        variables=list(variables) if variables else extract_variables(subject, body),
        created_at=now,
        updated_at=now,
    )
    _ensure_valid(template)
    if repository.get_by_event_and_channel(event_type, channel) is not None:
        raise ValueError(f"A template for {event_type} on {channel} already exists")
    return _store(session, repository.create, template)


def update_notification_template(
    session: Session,
    *,
    template_id: str,
    event_type: str | None = None,
    channel: str | None = None,
    format: str | None = None,
    body: str | None = None,
    subject: str | None = None,
    variables: Sequence[str] | None = None,
) -> NotificationTemplate:
    """Apply partial changes to a template, revalidating the merged result."""

    repository = NotificationTemplateRepository(session)
    current = repository.get(template_id)
    if current is None:
        raise ValueError(TEMPLATE_NOT_FOUND)

    merged = replace(
        current,
        event_type=event_type if event_type is not None else current.event_type,
        channel=channel if channel is not None else current.channel,
        format=format if format is not None else current.format,
        body=body if body is not None else current.body,
        subject=subject if subject is not None else current.subject,
        updated_at=now_utc(),
    )
    if variables is not None:
        merged.variables = list(variables)
    elif body is not None or subject is not None:
        merged.variables = extract_variables(merged.subject, merged.body)
    _ensure_valid(merged)

    existing = repository.get_by_event_and_channel(merged.event_type, merged.channel)
    if existing is not None and existing.template_id != template_id:
        raise ValueError(
            f"A template for {merged.event_type} on {merged.channel} already exists"
        )
    return _store(session, repository.update, merged)


def _ensure_valid(template: NotificationTemplate) -> None:
    errors = TemplateRenderer().validation_errors(template)
    if errors:
        raise ValueError("; ".join(errors))


def _store(session: Session, operation, template: NotificationTemplate) -> NotificationTemplate:
    try:
        return operation(template)
    except IntegrityError as exc:
        session.rollback()
        raise ValueError(
            f"A template for {template.event_type} on {template.channel} already exists"
        ) from exc


__all__ = [
    "TEMPLATE_NOT_FOUND",
    "TemplateRenderer",
    "build_render_context",
    "create_notification_template",
    "extract_variables",
    "find_notification_template",
    "format_context_value",
    "get_notification_template",
    "list_notification_templates",
    "update_notification_template",
]
