"""Data models for tracking frames, state and REST responses."""

from sellertrack.models._base import Timestamp, TrackingBaseModel, TrackingEnum
from sellertrack.models.connectivity import ConnectivityState
from sellertrack.models.frames import (
    PING_FRAME,
    ConnectionStatusFrame,
    ErrorFrame,
    InboundFrame,
    LocationUpdateFrame,
    encode_frame,
    parse_frame,
)
from sellertrack.models.geocoding import GeocodeResult, PlaceSuggestion, ReverseGeocodeResult
from sellertrack.models.location import LocationSample, SellerStatus
from sellertrack.models.metrics import ReportMetrics
from sellertrack.models.tracking import TrackingMetrics

__all__ = [
    "PING_FRAME",
    "ConnectionStatusFrame",
    "ConnectivityState",
    "ErrorFrame",
    "GeocodeResult",
    "InboundFrame",
    "LocationSample",
    "LocationUpdateFrame",
    "PlaceSuggestion",
    "ReportMetrics",
    "ReverseGeocodeResult",
    "SellerStatus",
    "Timestamp",
    "TrackingBaseModel",
    "TrackingEnum",
    "TrackingMetrics",
    "encode_frame",
    "parse_frame",
]
