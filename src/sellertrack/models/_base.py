"""Base model and enum for tracking payloads.

Every wire model inherits from :class:`TrackingBaseModel` which provides:

* frozen instances, so a model handed to a UI reader can never change
  under it.
* A ``model_validator(mode="before")`` that drops placeholder values
  (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

Enums inherit from :class:`TrackingEnum` which resolves any value without
a mapped member to ``UNKNOWN`` instead of raising ``ValueError``.
"""

from __future__ import annotations

import enum
import math
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from sellertrack._normalize import parse_timestamp

# Placeholder strings producers send for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null"})

Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces ISO strings or epoch numbers to UTC datetimes."""


class TrackingEnum(enum.StrEnum):
    """Base for string state enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> TrackingEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        unknown: TrackingEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class TrackingBaseModel(BaseModel):
    """Base for inbound payload models.

    Handles:
    * placeholder values (``""``, ``"--"``, NaN) → dropped so the field
      default is used instead
    * stashes the original payload dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original payload dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = TrackingBaseModel._clean_dict(values)
        # Keep an explicitly passed raw= (kwargs construction).
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
