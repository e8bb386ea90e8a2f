"""Server-derived tracking metrics model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from sellertrack._normalize import non_negative_or_none
from sellertrack.models._base import Timestamp, TrackingBaseModel


class TrackingMetrics(TrackingBaseModel):
    """Distance/ETA metrics the producer computes for a seller/shopkeeper pair.

    The client never derives these; it relays the latest value.
    ``is_moving`` is ``None`` when the producer did not send the flag.
    """

    distance_km: float | None = Field(
        default=None,
        validation_alias=AliasChoices("distance_to_shopkeeper_km", "distance_km"),
    )
    eta_minutes: float | None = Field(
        default=None,
        validation_alias=AliasChoices("estimated_arrival_minutes", "eta_minutes"),
    )
    is_moving: bool | None = None
    last_update: Timestamp = None

    @field_validator("distance_km", "eta_minutes", mode="before")
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> float | None:
        return non_negative_or_none(value)

    @field_validator("is_moving", mode="before")
    @classmethod
    def _coerce_moving(cls, value: Any) -> bool | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "y", "on"}
        return bool(value)
