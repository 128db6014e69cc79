"""Input sanitization and format validation helpers.

Strips markup and control characters from user-supplied text to prevent
XSS, and validates common healthcare identifier formats.
"""

import html
import re
from typing import Any

_TAG_PATTERN = re.compile(r"<[^>]*>")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_PATTERN = re.compile(r"^[\d\s\-()]+$")
_NPI_PATTERN = re.compile(r"^\d{10}$")


def escape_html(text: str) -> str:
    """Escape HTML special characters."""
    return html.escape(text, quote=True)


def sanitize_text(value: Any) -> str:
    """Remove HTML tags and control characters, then escape what remains."""
    if not isinstance(value, str):
        return str(value)
    sanitized = _TAG_PATTERN.sub("", value)
    sanitized = escape_html(sanitized)
    sanitized = _CONTROL_CHARS.sub("", sanitized)
    return sanitized.strip()


def sanitize_object(value: Any) -> Any:
    """Recursively sanitize every string in a nested structure."""
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, list):
        return [sanitize_object(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_object(item) for key, item in value.items()}
    return value


def validate_email(email: str) -> bool:
    """Validate email format."""
    return bool(_EMAIL_PATTERN.match(email))


def validate_phone(phone: str) -> bool:
    """Validate a phone number (10 to 15 digits, common separators)."""
    digits = re.sub(r"\D", "", phone)
    return bool(_PHONE_PATTERN.match(phone)) and 10 <= len(digits) <= 15


def validate_npi(npi: str) -> bool:
    """Validate a National Provider Identifier (10 digits)."""
    return bool(_NPI_PATTERN.match(npi))
