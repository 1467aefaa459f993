"""
Filter bag normalization helpers.

Export filters arrive as an untyped mapping (from the admin UI or a stored
job). Each helper returns a clean value or None when the input has the wrong
type or is empty, so a bad filter is ignored rather than failing the export.
"""

import math
from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import UUID


def pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """First value present under any of the given keys (camelCase first)."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def clean_str(value: Any) -> str | None:
    """Trimmed non-empty string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def clean_uuid(value: Any) -> str | None:
    """Canonical UUID string."""
    text = clean_str(value)
    if text is None:
        return None
    try:
        return str(UUID(text))
    except ValueError:
        return None


def clean_uuid_list(value: Any) -> list[str]:
    """UUID strings from a list, skipping blanks and invalid entries."""
    if not isinstance(value, (list, tuple)):
        return []
    cleaned = (clean_uuid(item) for item in value)
    return [item for item in cleaned if item is not None]


def clean_bool(value: Any) -> bool | None:
    """Only real booleans count."""
    return value if isinstance(value, bool) else None


def clean_number(value: Any) -> float | None:
    """Finite int or float, booleans excluded."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def clean_datetime(value: Any) -> datetime | None:
    """Timezone-aware datetime from a datetime, date or ISO-8601 string (naive means UTC)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = clean_str(value)
        if text is None:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def clean_bool_text(value: Any) -> bool | None:
    """A boolean, or the strings "true"/"false" in any case."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def clean_number_text(value: Any) -> float | None:
    """A finite number, or a string holding one."""
    if isinstance(value, str):
        text = clean_str(value)
        if text is None:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return clean_number(value)


def clean_choice(value: Any, choices: type[Enum]) -> Any:
    """Enum member whose name matches the upper-cased string, or None."""
    text = clean_str(value)
    if text is None or text.upper() not in choices.__members__:
        return None
    return choices[text.upper()]
