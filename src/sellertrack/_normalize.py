"""Normalization helpers.

Centralizes defensive parsing of producer values before they reach the models.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def non_negative_or_none(value: Any) -> float | None:
    parsed = safe_float(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a producer timestamp to an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix allowed, naive values assumed UTC)
    and epoch numbers in seconds or milliseconds. Anything else is ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        ts = float(value)
        if math.isnan(ts) or ts <= 0:
            return None
        if ts > _MS_THRESHOLD:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        numeric = safe_float(text)
        if numeric is not None:
            return parse_timestamp(numeric)
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None
