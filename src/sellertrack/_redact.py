"""Helpers for safe debug logging.

Tracking frames carry live seller positions and REST calls carry bearer
tokens. Credentials are masked and long strings cut before they reach
DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MASK = "<redacted>"
_SECRET_KEYS: frozenset[str] = frozenset(
    {"password", "token", "access_token", "refresh_token", "authorization", "cookie", "set-cookie"}
)


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a copy of a decoded JSON value that is safe to log."""
    if isinstance(value, str):
        return _clip(value, max_string)
    if isinstance(value, Mapping):
        return {
            str(key): _MASK if str(key).lower() in _SECRET_KEYS else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string) for item in value]
    return value
