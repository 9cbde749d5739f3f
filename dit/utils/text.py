# dit/utils/text.py
# Input sanitizing shared by every user-submitted text field

from __future__ import annotations

import re
from datetime import datetime, timezone

# Whole <script>...</script> elements, then any stray opening/closing tag.
_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_TAG_RE = re.compile(r"</?script\b[^>]*>", re.IGNORECASE)
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

DEFAULT_AUTHOR = "Anonymous"


def sanitize_text(value: str) -> str:
    """Strip script elements and control characters, then trim."""
    cleaned = _SCRIPT_BLOCK_RE.sub("", value)
    cleaned = _SCRIPT_TAG_RE.sub("", cleaned)
    cleaned = _CONTROL_RE.sub("", cleaned)
    return cleaned.strip()


def clean_field(value: str | None, max_len: int) -> str:
    """Sanitize and truncate; None becomes an empty string."""
    if not value:
        return ""
    return sanitize_text(value)[:max_len].strip()


def clean_author(value: str | None, max_len: int = 100) -> str:
    return clean_field(value, max_len) or DEFAULT_AUTHOR


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (sqlite returns those) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value is not None else None
