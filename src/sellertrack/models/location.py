"""Seller location sample model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from sellertrack._normalize import non_negative_or_none, safe_float
from sellertrack.models._base import Timestamp, TrackingBaseModel, TrackingEnum


class SellerStatus(TrackingEnum):
    """Location-sharing status reported for a seller."""

    UNKNOWN = "unknown"
    ACTIVE = "active"
    INACTIVE = "inactive"
    OFFLINE = "offline"


class LocationSample(TrackingBaseModel):
    """One position report for a seller.

    Immutable once received; each new sample replaces the previous one.

    Parameters
    ----------
    latitude : float
        Latitude in degrees (-90..90).
    longitude : float
        Longitude in degrees (-180..180).
    speed : float or None
        Ground speed, non-negative. ``None`` when absent or negative.
    heading : float or None
        Compass bearing in degrees, normalised to ``[0, 360)``.
    status : SellerStatus
        ``active``, ``inactive`` or ``offline``; ``unknown`` otherwise.
    battery_level : int or None
        Device battery percentage (0-100), ``None`` when unknown.
    timestamp : datetime or None
        Producer-assigned sample time (UTC).
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    speed: float | None = None
    heading: float | None = None
    status: SellerStatus = SellerStatus.UNKNOWN
    battery_level: int | None = None
    timestamp: Timestamp = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> Any:
        parsed = safe_float(value)
        # Leave unparseable input alone so pydantic reports it.
        return value if parsed is None else parsed

    @field_validator("speed", mode="before")
    @classmethod
    def _coerce_speed(cls, value: Any) -> float | None:
        return non_negative_or_none(value)

    @field_validator("heading", mode="before")
    @classmethod
    def _coerce_heading(cls, value: Any) -> float | None:
        parsed = safe_float(value)
        if parsed is None:
            return None
        return parsed % 360.0

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> SellerStatus:
        if isinstance(value, SellerStatus):
            return value
        return SellerStatus(str(value))

    @field_validator("battery_level", mode="before")
    @classmethod
    def _coerce_battery(cls, value: Any) -> int | None:
        parsed = safe_float(value)
        if parsed is None or not 0 <= parsed <= 100:
            return None
        return int(round(parsed))

    @property
    def coordinates(self) -> tuple[float, float]:
        """``(latitude, longitude)`` pair, as map layers expect it."""
        return (self.latitude, self.longitude)
