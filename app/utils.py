"""Utility helpers for the Arr Calendar service."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any


DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_string_value(value: Any) -> str | None:
    """Return a stripped string for scalar payload values, ``None`` otherwise."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def to_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def to_boolean(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
    return None


def to_string_array(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    cleaned = [entry.strip() for entry in value if isinstance(entry, str)]
    cleaned = [entry for entry in cleaned if entry]
    return cleaned or None


def first_present(*values: Any) -> Any:
    """Return the first value that is not ``None``."""

    for value in values:
        if value is not None:
            return value
    return None


def date_part(value: str | None) -> str:
    """Return the date-only prefix of an ISO timestamp."""

    if not value:
        return ""
    return value.split("T", 1)[0]


def parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 value into an aware UTC datetime.

    Date-only and naive values are read as UTC. Anything unparseable maps
    to the Unix epoch so that sorting stays total.
    """

    if not value:
        return EPOCH
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        if DATE_ONLY_RE.match(text):
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        else:
            parsed = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
