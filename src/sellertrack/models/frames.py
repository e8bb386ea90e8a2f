"""Tracking wire frames.

Inbound frames are JSON objects discriminated by ``type``:

* ``location_update`` - ``location`` object, optional ``tracking`` object
* ``connection_status`` - human readable ``message``
* ``error`` - server-side tracking error ``message``

The only outbound frame is the heartbeat ``{"type": "ping"}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Annotated, Any, Final, Literal

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from sellertrack._redact import redact_for_log
from sellertrack.exceptions import TrackingProtocolError
from sellertrack.models._base import TrackingBaseModel
from sellertrack.models.location import LocationSample
from sellertrack.models.tracking import TrackingMetrics

_logger = logging.getLogger(__name__)

PING_FRAME: Final[Mapping[str, str]] = {"type": "ping"}


class LocationUpdateFrame(TrackingBaseModel):
    type: Literal["location_update"] = "location_update"
    location: LocationSample
    tracking: TrackingMetrics | None = None

    @field_validator("tracking", mode="before")
    @classmethod
    def _lenient_tracking(cls, value: Any) -> Any:
        """A bad ``tracking`` payload is dropped; the location still applies."""
        if value is None or isinstance(value, TrackingMetrics):
            return value
        if not isinstance(value, Mapping):
            _logger.debug("Ignoring non-object tracking payload: %r", redact_for_log(value))
            return None
        try:
            return TrackingMetrics.model_validate(dict(value))
        except ValidationError:
            _logger.debug("Ignoring invalid tracking payload", exc_info=True)
            return None


class ConnectionStatusFrame(TrackingBaseModel):
    type: Literal["connection_status"] = "connection_status"
    message: str = ""


class ErrorFrame(TrackingBaseModel):
    type: Literal["error"] = "error"
    message: str = "Unknown tracking error"


InboundFrame = Annotated[
    LocationUpdateFrame | ConnectionStatusFrame | ErrorFrame,
    Field(discriminator="type"),
]

_FRAME_ADAPTER: TypeAdapter[LocationUpdateFrame | ConnectionStatusFrame | ErrorFrame] = TypeAdapter(InboundFrame)
_KNOWN_TYPES = frozenset({"location_update", "connection_status", "error"})


def _decode(data: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TrackingProtocolError("Frame is not valid UTF-8") from exc
    try:
        decoded = json.loads(data)
    except json.JSONDecodeError as exc:
        raise TrackingProtocolError(f"Frame is not JSON: {data[:64]!r}") from exc
    if not isinstance(decoded, dict):
        raise TrackingProtocolError("Frame decoded to non-object JSON")
    return decoded


def parse_frame(data: str | bytes | Mapping[str, Any]) -> LocationUpdateFrame | ConnectionStatusFrame | ErrorFrame:
    """Decode one inbound frame.

    Raises :class:`~sellertrack.exceptions.TrackingProtocolError` for
    non-JSON input, unknown ``type`` values, or payloads that fail
    validation (e.g. a ``location_update`` without coordinates).
    """
    payload = _decode(data)
    frame_type = payload.get("type")
    if not isinstance(frame_type, str) or frame_type not in _KNOWN_TYPES:
        raise TrackingProtocolError(
            f"Unknown frame type: {frame_type!r}",
            frame_type=frame_type if isinstance(frame_type, str) else None,
        )
    try:
        return _FRAME_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise TrackingProtocolError(
            f"Invalid {frame_type} frame: {exc.error_count()} validation error(s)",
            frame_type=frame_type,
        ) from exc


def encode_frame(frame: Mapping[str, Any]) -> str:
    """Serialise an outbound frame compactly."""
    return json.dumps(dict(frame), separators=(",", ":"))
