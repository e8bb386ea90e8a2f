"""Geocoding endpoints of the users service.

Endpoints:
  - /users/geocoding/geocode/simple (address -> coordinates)
  - /users/geocoding/reverse-geocode (coordinates -> address)
  - /users/geocoding/search-place (free-text place search)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from sellertrack._constants import DEFAULT_CITY, PLACE_SEARCH_LIMIT
from sellertrack._transport import JsonTransport
from sellertrack.config import TrackingConfig
from sellertrack.exceptions import TrackingApiError
from sellertrack.models.geocoding import GeocodeResult, PlaceSuggestion, ReverseGeocodeResult

_logger = logging.getLogger(__name__)

_GEOCODE = "/users/geocoding/geocode/simple"
_REVERSE = "/users/geocoding/reverse-geocode"
_SEARCH = "/users/geocoding/search-place"


def _url(config: TrackingConfig, endpoint: str) -> str:
    return f"{config.api_base_url.rstrip('/')}{endpoint}"


def _require_object(body: Any, endpoint: str) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise TrackingApiError(f"Unexpected response shape from {endpoint}", endpoint=endpoint)
    return body


async def geocode(
    config: TrackingConfig,
    transport: JsonTransport,
    address: str,
    city: str = DEFAULT_CITY,
) -> GeocodeResult:
    """Resolve *address* in *city* to coordinates."""
    if not address or not address.strip():
        raise ValueError("address must be non-empty")
    body = _require_object(
        await transport.get_json(_url(config, _GEOCODE), {"address": address.strip(), "city": city}),
        _GEOCODE,
    )
    try:
        return GeocodeResult.model_validate(body)
    except ValidationError as exc:
        raise TrackingApiError(
            f"Geocode response missing coordinates: {exc.error_count()} error(s)",
            endpoint=_GEOCODE,
        ) from exc


async def reverse_geocode(
    config: TrackingConfig,
    transport: JsonTransport,
    latitude: float,
    longitude: float,
) -> ReverseGeocodeResult:
    """Resolve a coordinate pair to a street address."""
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise ValueError(f"coordinates out of range: ({latitude}, {longitude})")
    body = _require_object(
        await transport.get_json(_url(config, _REVERSE), {"latitude": latitude, "longitude": longitude}),
        _REVERSE,
    )
    return ReverseGeocodeResult.model_validate(body)


async def search_place(
    config: TrackingConfig,
    transport: JsonTransport,
    query: str,
    city: str = DEFAULT_CITY,
    limit: int = PLACE_SEARCH_LIMIT,
) -> list[PlaceSuggestion]:
    """Free-text place search; invalid entries are skipped."""
    if not query or not query.strip():
        return []
    body = _require_object(
        await transport.get_json(_url(config, _SEARCH), {"query": query.strip(), "city": city, "limit": limit}),
        _SEARCH,
    )
    places = body.get("places")
    if not isinstance(places, list):
        return []
    results: list[PlaceSuggestion] = []
    for item in places:
        if not isinstance(item, dict):
            continue
        try:
            results.append(PlaceSuggestion.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping unparseable place entry", exc_info=True)
    return results
