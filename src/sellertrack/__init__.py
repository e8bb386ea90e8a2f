"""sellertrack - Async Python client for live seller location tracking."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sellertrack")
except PackageNotFoundError:
    __version__ = "0+local"
from sellertrack.client import TrackingClient
from sellertrack.config import TrackingConfig
from sellertrack.credentials import CredentialStore
from sellertrack.exceptions import (
    TrackingApiError,
    TrackingAuthenticationError,
    TrackingConfigError,
    TrackingError,
    TrackingProtocolError,
    TrackingTransportError,
)
from sellertrack.models import (
    ConnectivityState,
    GeocodeResult,
    LocationSample,
    PlaceSuggestion,
    ReportMetrics,
    ReverseGeocodeResult,
    SellerStatus,
    TrackingMetrics,
)
from sellertrack.session import TrackingSession
from sellertrack.state import TrackingReducer, TrackingSnapshot

__all__ = [
    "__version__",
    "ConnectivityState",
    "CredentialStore",
    "GeocodeResult",
    "LocationSample",
    "PlaceSuggestion",
    "ReportMetrics",
    "ReverseGeocodeResult",
    "SellerStatus",
    "TrackingApiError",
    "TrackingAuthenticationError",
    "TrackingClient",
    "TrackingConfig",
    "TrackingConfigError",
    "TrackingError",
    "TrackingMetrics",
    "TrackingProtocolError",
    "TrackingReducer",
    "TrackingSession",
    "TrackingSnapshot",
    "TrackingTransportError",
]
