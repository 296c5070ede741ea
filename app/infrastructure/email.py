"""SendGrid transport used for the email channel when credentials are configured."""

from __future__ import annotations

import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        # Fall back to a JSON string for unrecognised payloads
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        try:
            return "; ".join(str(item) for item in parsed)
        except TypeError:
            return None

    return None


def _log_sendgrid_exception(exc: Exception) -> None:
    """Log a SendGrid API error with helpful troubleshooting details."""

    status_code = getattr(exc, "status_code", None)
    body = getattr(exc, "body", None)
    details = _extract_sendgrid_error_details(body)

    if status_code and details:
        logger.error(
            "SendGrid API request failed with status %s: %s", status_code, details
        )
    elif status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
    elif details:
        logger.error("SendGrid API request failed: %s", details)
    else:
        logger.exception("Error sending email via SendGrid: %s", exc)


def _log_unsuccessful_response(response: Any) -> None:
    """Log details from an unsuccessful SendGrid response object."""

    status_code = getattr(response, "status_code", None)
    body = getattr(response, "body", None)
    details = _extract_sendgrid_error_details(body)

    if details:
        logger.error(
            "SendGrid API responded with status %s: %s", status_code, details
        )
    else:
        logger.error("SendGrid API responded with status %s", status_code)


def send_email(
    subject: str,
    content: str,
    recipient: str,
    *,
    api_key: str | None,
    sender: str | None,
    html: bool = True,
) -> bool:
    """Send an email through SendGrid and report whether it was accepted.

    ``content`` is sent as the HTML part unless ``html`` is false, in which case
    it becomes the plain text part.
    """

    if not (api_key and sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=sender,
        to_emails=recipient,
        subject=subject,
        html_content=content if html else None,
        plain_text_content=None if html else content,
    )

    try:
        client = SendGridAPIClient(api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        _log_sendgrid_exception(exc)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_unsuccessful_response(response)
        return False

    return True


__all__ = ["send_email"]
