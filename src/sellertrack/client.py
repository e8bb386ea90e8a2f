"""High-level async client for live seller tracking."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from sellertrack._api import geocoding as _geocoding_api
from sellertrack._api import reports as _reports_api
from sellertrack._constants import DEFAULT_CITY, PLACE_SEARCH_LIMIT
from sellertrack._transport import AiohttpSocketConnector, JsonTransport, RestTransport, SocketConnector
from sellertrack.config import TrackingConfig
from sellertrack.credentials import CredentialStore
from sellertrack.exceptions import TrackingError
from sellertrack.models.connectivity import ConnectivityState
from sellertrack.models.geocoding import GeocodeResult, PlaceSuggestion, ReverseGeocodeResult
from sellertrack.models.metrics import ReportMetrics
from sellertrack.session import TrackingSession
from sellertrack.state.reducer import SnapshotListener, TrackingReducer
from sellertrack.state.snapshot import TrackingSnapshot

_logger = logging.getLogger(__name__)


class TrackingClient:
    """Async client for the field-sales tracking feed.

    Usage::

        async with TrackingClient(config) as client:
            client.track(seller_id, shopkeeper_id)
            snapshot = await client.wait_for_update(timeout=60)

    Leaving the ``async with`` block always stops tracking and releases
    the socket, timers and (if owned) the HTTP session.
    """

    def __init__(
        self,
        config: TrackingConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        connector: SocketConnector | None = None,
        rest: JsonTransport | None = None,
        credentials: CredentialStore | None = None,
    ) -> None:
        self._config = config or TrackingConfig()
        self._external_session = session is not None
        self._http_session = session
        self._connector = connector
        self._rest = rest
        if credentials is None and self._config.token_file is not None:
            credentials = CredentialStore(self._config.token_file)
        self._credentials = credentials
        self._reducer = TrackingReducer()
        self._tracking: TrackingSession | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingClient:
        if self._http_session is None and (self._connector is None or self._rest is None):
            self._http_session = aiohttp.ClientSession()
        if self._connector is None:
            assert self._http_session is not None  # noqa: S101
            self._connector = AiohttpSocketConnector(self._http_session)
        if self._rest is None:
            assert self._http_session is not None  # noqa: S101
            credentials = self._credentials
            self._rest = RestTransport(
                self._config,
                self._http_session,
                token_provider=credentials.load_token if credentials is not None else None,
                on_unauthorized=credentials.clear if credentials is not None else None,
            )
        self._tracking = TrackingSession(
            self._config,
            self._connector,
            on_state_change=self._on_state_change,
            on_frame=self._reducer.apply_raw,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        tracking = self._tracking
        self._tracking = None
        if tracking is not None:
            await tracking.aclose()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_tracking(self) -> TrackingSession:
        if self._tracking is None:
            raise TrackingError("Client not initialized. Use 'async with TrackingClient(...) as client:'")
        return self._tracking

    def _require_rest(self) -> JsonTransport:
        if self._rest is None or self._tracking is None:
            raise TrackingError("Client not initialized. Use 'async with TrackingClient(...) as client:'")
        return self._rest

    def _on_state_change(self, state: ConnectivityState) -> None:
        message = self._tracking.failure_message if self._tracking is not None else None
        self._reducer.apply_connectivity(state, message)

    # ------------------------------------------------------------------
    # Live tracking
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> TrackingSnapshot:
        """Latest state; replaced wholesale on every change."""
        return self._reducer.snapshot

    @property
    def connectivity(self) -> ConnectivityState:
        return self._reducer.snapshot.connectivity

    @property
    def session(self) -> TrackingSession:
        return self._require_tracking()

    def track(self, seller_id: str | int | None, shopkeeper_id: str | int | None) -> None:
        """Start (or switch) tracking to a seller/shopkeeper pair."""
        tracking = self._require_tracking()
        previous = tracking.pair
        tracking.start(seller_id, shopkeeper_id)
        if previous is not None and tracking.pair != previous:
            self._reducer.reset()

    def stop(self) -> None:
        """Stop tracking. Safe to call repeatedly."""
        if self._tracking is not None:
            self._tracking.stop()

    def reconnect(self) -> None:
        """Manual retry, e.g. from a "reconnect" button after ``failed``."""
        self._require_tracking().reconnect()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call *listener* with every new snapshot; returns an unsubscribe callable."""
        return self._reducer.subscribe(listener)

    async def wait_for_update(self, timeout: float | None = None) -> TrackingSnapshot | None:
        """Wait for the next snapshot. Returns ``None`` on timeout."""
        future: asyncio.Future[TrackingSnapshot] = asyncio.get_running_loop().create_future()

        def _listener(snapshot: TrackingSnapshot) -> None:
            if not future.done():
                future.set_result(snapshot)

        unsubscribe = self._reducer.subscribe(_listener)
        try:
            return await asyncio.wait_for(future, timeout)
        except TimeoutError:
            return None
        finally:
            unsubscribe()

    # ------------------------------------------------------------------
    # REST boundary
    # ------------------------------------------------------------------

    async def geocode(self, address: str, city: str = DEFAULT_CITY) -> GeocodeResult:
        return await _geocoding_api.geocode(self._config, self._require_rest(), address, city)

    async def reverse_geocode(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        return await _geocoding_api.reverse_geocode(self._config, self._require_rest(), latitude, longitude)

    async def search_place(
        self,
        query: str,
        city: str = DEFAULT_CITY,
        limit: int = PLACE_SEARCH_LIMIT,
    ) -> list[PlaceSuggestion]:
        return await _geocoding_api.search_place(self._config, self._require_rest(), query, city, limit)

    async def get_metrics(self) -> ReportMetrics:
        return await _reports_api.get_metrics(self._config, self._require_rest())
