"""Unit tests for the SendGrid email helper utilities."""

from __future__ import annotations

import json
import types

import pytest

from app.domain.errors import PublishError
from app.infrastructure import email as email_module
from app.infrastructure.notifications import SendGridEmailPublisher


class _StubSendGridAPIClient:
    """Default stub client that records messages and returns a success response."""

    sent: list = []

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        self.sent.append(message)
        return types.SimpleNamespace(status_code=202, body=None)


@pytest.fixture(autouse=True)
def _reset_stub():
    _StubSendGridAPIClient.sent = []


def test_send_email_without_configuration() -> None:
    """When SendGrid credentials are missing the helper should exit early."""

    assert (
        email_module.send_email(
            "Subject", "<p>Body</p>", "user@example.com", api_key=None, sender=None
        )
        is False
    )


def test_send_email_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """A successful SendGrid response should return ``True``."""

    monkeypatch.setattr(email_module, "SendGridAPIClient", _StubSendGridAPIClient)

    result = email_module.send_email(
        "Subject",
        "<p>Body</p>",
        "user@example.com",
        api_key="SG.fake",
        sender="sender@example.com",
    )

    assert result is True
    assert len(_StubSendGridAPIClient.sent) == 1


def test_send_email_logs_unsuccessful_response(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    class RejectingClient(_StubSendGridAPIClient):
        def send(self, message):
            return types.SimpleNamespace(
                status_code=400, body=json.dumps({"errors": [{"message": "Bad recipient"}]})
            )

    monkeypatch.setattr(email_module, "SendGridAPIClient", RejectingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email(
            "Subject", "Body", "user@example.com", api_key="SG.fake", sender="s@example.com"
        )

    assert result is False
    assert "status 400" in caplog.text
    assert "Bad recipient" in caplog.text


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "help": "https://sendgrid.com/docs/API_Reference/Web_API_v3/How_To_Use_The_Web_API_v3/authentication.html",
                    }
                ]
            }
        ).encode()

    class FailingClient(_StubSendGridAPIClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email(
            "Subject",
            "<p>Body</p>",
            "user@example.com",
            api_key="SG.fake",
            sender="sender@example.com",
        )

    assert result is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


@pytest.mark.anyio
async def test_sendgrid_publisher_sends_plain_text(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []

    def fake_send_email(subject, content, recipient, *, api_key, sender, html=True):
        calls.append(
            {"subject": subject, "content": content, "recipient": recipient, "html": html}
        )
        return True

    monkeypatch.setattr(
        "app.infrastructure.notifications.publishers.send_email", fake_send_email
    )
    publisher = SendGridEmailPublisher(api_key="SG.fake", sender="sender@example.com")

    message_id = await publisher.publish(
        target="dev@example.com",
        message="Plain body",
        subject="Build failed",
        attributes={"format": "text"},
    )

    assert message_id is None
    assert calls == [
        {
            "subject": "Build failed",
            "content": "Plain body",
            "recipient": "dev@example.com",
            "html": False,
        }
    ]


@pytest.mark.anyio
async def test_sendgrid_publisher_raises_when_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "app.infrastructure.notifications.publishers.send_email",
        lambda *args, **kwargs: False,
    )
    publisher = SendGridEmailPublisher(api_key="SG.fake", sender="sender@example.com")

    with pytest.raises(PublishError):
        await publisher.publish(target="dev@example.com", message="<p>x</p>")
