"""Security helpers for redacting secrets and validating contact details."""

from __future__ import annotations

import ipaddress
import logging
import re
from collections.abc import Mapping
from typing import Any, Final
from urllib.parse import urlsplit

_Pattern = tuple[re.Pattern[str], str]

# Applied in order; specific token shapes must run before the generic one.
_SENSITIVE_PATTERNS: Final[tuple[_Pattern, ...]] = (
    (
        re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
        "[REDACTED_JWT]",
    ),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [REDACTED]"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), "[REDACTED_AWS_KEY]"),
    (re.compile(r"password[\"\s:=]+[^\s\"]+", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"pwd[\"\s:=]+[^\s\"]+", re.IGNORECASE), "pwd=[REDACTED]"),
    (re.compile(r"api[_-]?key[\"\s:=]+[^\s\"]+", re.IGNORECASE), "api_key=[REDACTED]"),
    (re.compile(r"secret[_-]?key[\"\s:=]+[^\s\"]+", re.IGNORECASE), "secret_key=[REDACTED]"),
    (re.compile(r"\b[A-Za-z0-9]{32,}\b"), "[REDACTED_TOKEN]"),
)

_PII_PATTERNS: Final[tuple[_Pattern, ...]] = (
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL_REDACTED]"),
    (re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"), "[CC_REDACTED]"),
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN_REDACTED]"),
    (re.compile(r"\+\d{7,15}\b"), "[PHONE_REDACTED]"),
    (re.compile(r"\(?\b\d{3}\)?[-.\s]\d{3}[-.\s]\d{4}\b"), "[PHONE_REDACTED]"),
)

_EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
_E164_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\+[1-9]\d{1,14}$")
_CONTROL_CHARS: Final[re.Pattern[str]] = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def _apply(patterns: tuple[_Pattern, ...], text: str) -> str:
    for pattern, replacement in patterns:
        text = pattern.sub(replacement, text)
    return text


def filter_sensitive_data(content: str | None) -> str:
    """Redact passwords, API keys, tokens and similar secrets from ``content``.

    Runs on every rendered notification before it is transmitted or stored.
    """

    if not content:
        return ""
    return _apply(_SENSITIVE_PATTERNS, content)


def filter_sensitive_values(value: Any) -> Any:
    """Apply :func:`filter_sensitive_data` to every string nested in ``value``."""

    if isinstance(value, str):
        return filter_sensitive_data(value)
    if isinstance(value, Mapping):
        return {key: filter_sensitive_values(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [filter_sensitive_values(item) for item in value]
    return value


def redact_pii(message: str | None) -> str:
    """Remove e-mail addresses, phone numbers and similar personal data."""

    if not message:
        return ""
    return _apply(_PII_PATTERNS, message)


class PiiRedactingFilter(logging.Filter):
    """Logging filter that scrubs personal data from formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_pii(filter_sensitive_data(message))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def sanitize_string(value: str | None) -> str:
    """Strip control characters and surrounding whitespace from ``value``."""

    if not value:
        return ""
    return _CONTROL_CHARS.sub("", value).strip()


def sanitize_email(value: str) -> str:
    """Return a normalized e-mail address or raise ``ValueError``."""

    email = sanitize_string(value).lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def sanitize_phone_number(value: str) -> str:
    """Return ``value`` in E.164 form or raise ``ValueError``."""

    digits = re.sub(r"[^\d+]", "", sanitize_string(value))
    if "+" in digits:
        digits = "+" + digits.replace("+", "")
    if not _E164_PATTERN.match(digits):
        raise ValueError("Invalid phone number, expected E.164 format")
    return digits


def is_http_url(value: str | None) -> bool:
    """Return ``True`` when ``value`` is an absolute http(s) URL."""

    if not value:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def sanitize_url(value: str, *, allow_private: bool = False) -> str:
    """Validate a user supplied webhook URL.

    Only http(s) is accepted, and loopback or private network hosts are rejected
    unless ``allow_private`` is set.
    """

    url = sanitize_string(value)
    if not is_http_url(url):
        raise ValueError("Invalid URL: only http and https are allowed")
    hostname = (urlsplit(url).hostname or "").lower()
    if not allow_private and _is_private_host(hostname):
        raise ValueError("Invalid URL: private addresses are not allowed")
    return url


def _is_private_host(hostname: str) -> bool:
    if hostname == "localhost":
        return True
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local


__all__ = [
    "PiiRedactingFilter",
    "filter_sensitive_data",
    "filter_sensitive_values",
    "is_http_url",
    "redact_pii",
    "sanitize_email",
    "sanitize_phone_number",
    "sanitize_string",
    "sanitize_url",
]
