"""Geocoding response models (users service ``/geocoding`` endpoints)."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from sellertrack._normalize import safe_float, safe_str
from sellertrack.models._base import TrackingBaseModel


def _lift_coordinates(values: Any) -> Any:
    """Flatten a nested ``coordinates`` object into the top level."""
    if not isinstance(values, dict):
        return values
    coords = values.get("coordinates")
    if not isinstance(coords, dict):
        return values
    merged = {**coords, **{k: v for k, v in values.items() if k != "coordinates"}}
    merged.setdefault("raw", values)
    return merged


class GeocodeResult(TrackingBaseModel):
    """Address → coordinates lookup result.

    Parameters
    ----------
    latitude, longitude : float
        Resolved position, taken from the ``coordinates`` object.
    full_address : str or None
        Normalised address the geocoder matched.
    confidence : float or None
        Geocoder confidence score.
    from_cache : bool
        Whether the users service answered from its own cache.
    """

    latitude: float
    longitude: float
    full_address: str | None = None
    confidence: float | None = None
    from_cache: bool = False

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, values: Any) -> Any:
        return _lift_coordinates(values)

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float | None:
        return safe_float(value)


class ReverseGeocodeResult(TrackingBaseModel):
    """Coordinates → address lookup result."""

    address: str | None = None
    street: str | None = None
    neighbourhood: str | None = Field(default=None, validation_alias=AliasChoices("neighbourhood", "neighborhood"))
    city: str | None = None

    @field_validator("address", "street", "neighbourhood", "city", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)


class PlaceSuggestion(TrackingBaseModel):
    """One hit of a free-text place search."""

    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "display_name", "place_name"))
    address: str | None = Field(default=None, validation_alias=AliasChoices("address", "full_address"))
    latitude: float | None = Field(default=None, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float | None = Field(default=None, validation_alias=AliasChoices("longitude", "lon", "lng"))

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, values: Any) -> Any:
        return _lift_coordinates(values)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)
