"""Tests for template rendering, validation and the template use cases."""

from __future__ import annotations

import json

import pytest

from app.application.use_cases.notifications import (
    DEFAULT_TEMPLATES,
    TEMPLATE_NOT_FOUND,
    TemplateRenderer,
    build_render_context,
    create_notification_template,
    get_notification_template,
    list_notification_templates,
    seed_default_templates,
    update_notification_template,
)
from app.application.use_cases.notifications.templates import extract_variables
from app.domain.entities import (
    FailingTest,
    NotificationTemplate,
    ReportTrends,
)


def _template(**overrides) -> NotificationTemplate:
    values = {
        "template_id": "tpl-1",
        "event_type": "test_failure",
        "channel": "email",
        "format": "text",
        "body": "Hello {{name}}",
    }
    values.update(overrides)
    return NotificationTemplate(**values)


def test_render_substitutes_and_blanks_missing_values(caplog) -> None:
    renderer = TemplateRenderer()

    with caplog.at_level("WARNING"):
        rendered = renderer.render(
            _template(body="Hi {{name}}, status={{status}}"), {"name": "Ann"}
        )

    assert rendered == "Hi Ann, status="
    assert "status" in caplog.text


def test_render_formats_structured_values() -> None:
    renderer = TemplateRenderer()
    context = {
        "urls": ["a.png", "b.png"],
        "data": {"passed": 3, "failed": 1},
        "trends": ReportTrends(execution_change=5.0, pass_rate_change=-1.5),
        "count": 0,
    }

    text = renderer.render_text("{{urls}}|{{data}}|{{trends}}|{{count}}", context)

    urls, data, trends, count = text.split("|")
    assert urls == "a.png, b.png"
    assert json.loads(data) == {"passed": 3, "failed": 1}
    assert json.loads(trends) == {"execution_change": 5.0, "pass_rate_change": -1.5}
    assert count == "0"


def test_render_notification_renders_subject() -> None:
    rendered = TemplateRenderer().render_notification(
        _template(subject="Failed: {{name}}", format="html"), {"name": "login"}
    )

    assert rendered.subject == "Failed: login"
    assert rendered.body == "Hello login"
    assert rendered.format == "html"
    assert rendered.channel == "email"


def test_render_leaves_non_identifier_tokens_untouched() -> None:
    text = TemplateRenderer().render_text("{{ spaced }} {{ok}}", {"ok": "yes"})

    assert text == "{{ spaced }} yes"


def test_render_context_exposes_event_fields(make_event) -> None:
    event = make_event(screenshots=("s1.png",))

    context = build_render_context(event)

    assert context["testName"] == "case-1"
    assert context["duration"] == "1200ms"
    assert context["userName"] == "user-1"
    assert context["projectName"] == "project-1"
    assert context["screenshotUrls"] == ["s1.png"]
    assert context["timestamp"] == "2024-05-01T12:00:00+00:00"


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"body": "  "}, "body is required"),
        ({"body": "Hello {{name}"}, "unbalanced braces"),
        ({"body": "Hello {{first-name}}"}, "invalid variable names"),
        ({"subject": "Hi {{ bad }}"}, "invalid variable names"),
        ({"event_type": "deploy"}, "Unknown event type"),
        ({"channel": "fax"}, "Unsupported channel"),
        ({"channel": "sms", "format": "html"}, "sms templates must use text format"),
    ],
)
def test_validation_errors(overrides, message) -> None:
    errors = TemplateRenderer().validation_errors(_template(**overrides))

    assert any(message in error for error in errors)


def test_valid_template() -> None:
    renderer = TemplateRenderer()

    assert renderer.validate(_template(subject="{{name}}", format="html")) is True
    assert renderer.validate(_template(body="")) is False


def test_extract_variables_in_order() -> None:
    assert extract_variables("{{a}} {{b}}", "{{b}} {{c}}", None) == ["a", "b", "c"]


def test_default_catalogue_is_valid() -> None:
    renderer = TemplateRenderer()
    keys = set()
    for default in DEFAULT_TEMPLATES:
        template = _template(
            event_type=default.event_type,
            channel=default.channel,
            format=default.format,
            subject=default.subject,
            body=default.body,
        )
        assert renderer.validation_errors(template) == []
        keys.add((default.event_type, default.channel))

    assert len(keys) == len(DEFAULT_TEMPLATES)


def test_create_template_extracts_variables(session) -> None:
    template = create_notification_template(
        session,
        event_type="test_failure",
        channel="sms",
        format="text",
        body="{{testName}} failed: {{errorMessage}}",
    )

    assert template.template_id
    assert template.variables == ["testName", "errorMessage"]
    assert get_notification_template(session, template.template_id).body == template.body


def test_duplicate_template_is_rejected(session) -> None:
    values = {
        "event_type": "test_failure",
        "channel": "email",
        "format": "html",
        "subject": "Failed",
        "body": "<p>{{testName}}</p>",
    }
    create_notification_template(session, **values)

    with pytest.raises(ValueError, match="already exists"):
        create_notification_template(session, **values)


def test_invalid_template_is_rejected(session) -> None:
    with pytest.raises(ValueError, match="unbalanced braces"):
        create_notification_template(
            session, event_type="test_failure", channel="sms", format="text", body="{{x"
        )


def test_update_template_merges_and_revalidates(session) -> None:
    created = create_notification_template(
        session, event_type="test_failure", channel="sms", format="text", body="{{testName}}"
    )

    updated = update_notification_template(
        session, template_id=created.template_id, body="{{testName}} took {{duration}}"
    )

    assert updated.body == "{{testName}} took {{duration}}"
    assert updated.variables == ["testName", "duration"]
    assert updated.channel == "sms"

    with pytest.raises(ValueError, match="sms templates must use text format"):
        update_notification_template(session, template_id=created.template_id, format="html")


def test_update_template_rejects_slot_collision(session) -> None:
    create_notification_template(
        session, event_type="test_failure", channel="sms", format="text", body="a"
    )
    other = create_notification_template(
        session, event_type="critical_alert", channel="sms", format="text", body="b"
    )

    with pytest.raises(ValueError, match="already exists"):
        update_notification_template(
            session, template_id=other.template_id, event_type="test_failure"
        )


def test_update_unknown_template(session) -> None:
    with pytest.raises(ValueError, match=TEMPLATE_NOT_FOUND):
        update_notification_template(session, template_id="missing", body="x")


def test_seed_default_templates_is_idempotent(session) -> None:
    first = seed_default_templates(session)
    second = seed_default_templates(session)

    assert len(first) == len(DEFAULT_TEMPLATES)
    assert second == []
    assert len(list_notification_templates(session)) == len(DEFAULT_TEMPLATES)
    assert {t.channel for t in list_notification_templates(session, event_type="test_failure")} == {
        "email",
        "sms",
        "slack",
        "webhook",
    }


def test_failing_test_dataclass_renders_as_json() -> None:
    failing = FailingTest(
        test_case_id="case-1", test_name="Login", failure_count=2, last_failure=None
    )

    text = TemplateRenderer().render_text("{{top}}", {"top": failing})

    assert json.loads(text)["failure_count"] == 2
