"""Shared datetime utilities."""

from __future__ import annotations

import re
from datetime import datetime

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string, returning None on invalid input.

    Handles common variations:
    - Date only: 2026-02-12
    - Standard ISO format: 2026-02-12T10:30:00
    - With timezone Z suffix: 2026-02-12T10:30:00Z
    - With timezone offset: 2026-02-12T10:30:00+00:00

    Returns a naive datetime (tzinfo stripped) for consistent comparison.
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def first_date(text: str | None) -> str | None:
    """Return the first ``YYYY-MM-DD`` token found in ``text``."""
    if not text:
        return None
    match = DATE_PATTERN.search(text)
    return match.group(0) if match else None


def to_date_key(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DD`` in its own (local) frame."""
    return value.strftime("%Y-%m-%d")
