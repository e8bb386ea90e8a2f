"""Reconnect-resilient tracking session.

Owns exactly one physical socket at a time for one (seller, shopkeeper)
pair, plus the two timers around it:

- the heartbeat task, alive only while ``connected``
- the pending reconnect timer, alive only while ``reconnecting``

State machine::

    connecting ──open──▶ connected
        │                   │
        └──close/error──────┴──▶ reconnecting ──delay──▶ connecting
                                     │
                          budget exhausted ──▶ failed
    any ──stop()──▶ closed

Socket callbacks (open, message, close) and timer firings are the only
inputs; nothing polls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from sellertrack._backoff import reconnect_delay
from sellertrack._constants import RELOAD_MESSAGE
from sellertrack._transport import SocketConnector, TrackingSocket, tracking_url
from sellertrack.config import TrackingConfig
from sellertrack.models.connectivity import ConnectivityState
from sellertrack.models.frames import PING_FRAME

_logger = logging.getLogger(__name__)


def _normalize_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TrackingSession:
    """Keep a tracking connection alive for one seller/shopkeeper pair.

    Usage::

        session = TrackingSession(config, connector, on_frame=reducer.apply_raw)
        session.start(seller_id, shopkeeper_id)
        ...
        session.stop()

    ``start``, ``stop`` and ``reconnect`` never block; they must be called
    from the event loop thread.
    """

    def __init__(
        self,
        config: TrackingConfig,
        connector: SocketConnector,
        *,
        on_state_change: Callable[[ConnectivityState], None] | None = None,
        on_frame: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._connector = connector
        self._on_state_change = on_state_change
        self._on_frame = on_frame
        self._loop: asyncio.AbstractEventLoop | None = None

        self._pair: tuple[str, str] | None = None
        self._state = ConnectivityState.CLOSED
        self._attempts = 0
        self._failure_message: str | None = None
        # Bumped on every teardown; callbacks from older sockets compare and bail.
        self._generation = 0

        self._socket: TrackingSocket | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._reconnect_delay: float | None = None
        self._closing: set[asyncio.Task[Any]] = set()
        self._heartbeats_sent = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def pair(self) -> tuple[str, str] | None:
        """``(seller_id, shopkeeper_id)`` of the current subscription."""
        return self._pair

    @property
    def attempts(self) -> int:
        """Consecutive failed attempts since the last successful open."""
        return self._attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    @property
    def pending_reconnect_delay(self) -> float | None:
        """Delay (seconds) of the scheduled reconnect, if one is pending."""
        return self._reconnect_delay if self._reconnect_timer is not None else None

    @property
    def heartbeat_active(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    @property
    def heartbeats_sent(self) -> int:
        return self._heartbeats_sent

    @property
    def failure_message(self) -> str | None:
        """User-facing message once the reconnect budget is exhausted."""
        return self._failure_message

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def start(self, seller_id: str | int | None, shopkeeper_id: str | int | None) -> None:
        """Begin tracking a pair, replacing any current subscription.

        Missing or blank identifiers are rejected with a warning; no
        connection is attempted and the state is left as is.
        """
        seller = _normalize_id(seller_id)
        shopkeeper = _normalize_id(shopkeeper_id)
        if seller is None or shopkeeper is None:
            _logger.warning(
                "Tracking not started: seller_id and shopkeeper_id are required (got %r, %r)",
                seller_id,
                shopkeeper_id,
            )
            return

        self._loop = asyncio.get_running_loop()
        if self._pair is not None and self._pair != (seller, shopkeeper):
            _logger.debug("Tracking pair changed %s -> %s", self._pair, (seller, shopkeeper))
        self._pair = (seller, shopkeeper)
        self._attempts = 0
        self._connect()

    def stop(self) -> None:
        """Cancel timers, close the socket, and enter ``closed``. Idempotent."""
        self._teardown()
        self._attempts = 0
        self._failure_message = None
        self._set_state(ConnectivityState.CLOSED)

    def reconnect(self) -> None:
        """Connect again right now, superseding any scheduled retry."""
        if self._pair is None:
            _logger.warning("Tracking reconnect ignored: no seller/shopkeeper pair was started")
            return
        self._loop = asyncio.get_running_loop()
        self._attempts = 0
        self._connect()

    async def aclose(self) -> None:
        """:meth:`stop`, then wait for the socket close to finish."""
        self.stop()
        pending = [task for task in self._closing if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> TrackingSession:
        self._loop = asyncio.get_running_loop()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internal: lifecycle
    # ------------------------------------------------------------------

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _retire(self, task: asyncio.Task[Any]) -> None:
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def _set_state(self, state: ConnectivityState) -> None:
        previous = self._state
        if previous is state:
            return
        self._state = state
        if previous is ConnectivityState.CONNECTED:
            self._cancel_heartbeat()
        _logger.debug("Tracking state %s -> %s", previous.value, state.value)
        if self._on_state_change is not None:
            try:
                self._on_state_change(state)
            except Exception:
                _logger.debug("on_state_change callback failed", exc_info=True)

    def _cancel_reconnect_timer(self) -> None:
        timer = self._reconnect_timer
        self._reconnect_timer = None
        self._reconnect_delay = None
        if timer is not None:
            timer.cancel()

    def _cancel_heartbeat(self) -> None:
        task = self._heartbeat_task
        self._heartbeat_task = None
        if task is None or task.done():
            return
        task.cancel()
        self._retire(task)

    def _teardown(self) -> None:
        """Release the socket and both timers of the current generation."""
        self._generation += 1
        self._cancel_reconnect_timer()
        self._cancel_heartbeat()

        reader = self._reader_task
        self._reader_task = None
        socket = self._socket
        self._socket = None

        # A reader tearing itself down (from a callback) exits once its socket closes.
        if reader is not None and not reader.done() and reader is not _current_task():
            reader.cancel()
            self._retire(reader)
        if socket is not None:
            self._spawn_close(socket)

    def _spawn_close(self, socket: TrackingSocket) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        self._retire(loop.create_task(self._close_quietly(socket)))

    @staticmethod
    async def _close_quietly(socket: TrackingSocket) -> None:
        try:
            await socket.close()
        except Exception:
            _logger.debug("Tracking socket close failed", exc_info=True)

    def _connect(self) -> None:
        pair = self._pair
        if pair is None:
            return
        self._teardown()
        self._failure_message = None
        generation = self._generation

        self._set_state(ConnectivityState.CONNECTING)
        if generation != self._generation:
            # on_state_change stopped or restarted us.
            return

        url = tracking_url(self._config.ws_base_url, *pair)
        _logger.info(
            "Connecting tracking socket seller=%s shopkeeper=%s attempt=%d",
            pair[0],
            pair[1],
            self._attempts,
        )
        self._reader_task = self._require_loop().create_task(
            self._run(generation, url),
            name=f"sellertrack-reader-{pair[0]}-{pair[1]}",
        )

    async def _run(self, generation: int, url: str) -> None:
        """Open one socket, pump its frames, then report the close."""
        try:
            socket = await self._connector.connect(url)
        except Exception as exc:
            _logger.warning("Tracking connection to %s failed: %s", url, exc)
            self._handle_close(generation, code=None, reason=str(exc))
            return

        if generation != self._generation:
            await self._close_quietly(socket)
            return

        self._socket = socket
        self._handle_open(generation)

        reason: str | None = None
        try:
            async for text in socket:
                if generation != self._generation:
                    break
                self._handle_message(text)
        except Exception as exc:
            reason = str(exc)
            _logger.warning("Tracking socket error: %s", exc)
        finally:
            if self._socket is socket:
                self._socket = None
            await self._close_quietly(socket)

        self._handle_close(generation, code=socket.close_code, reason=reason)

    # ------------------------------------------------------------------
    # Internal: socket callbacks
    # ------------------------------------------------------------------

    def _handle_open(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._attempts = 0
        _logger.info("Tracking socket connected")
        self._set_state(ConnectivityState.CONNECTED)
        if generation == self._generation and self._state is ConnectivityState.CONNECTED:
            self._heartbeat_task = self._require_loop().create_task(self._heartbeat_loop(generation))

    def _handle_message(self, text: str) -> None:
        if self._on_frame is None:
            return
        try:
            self._on_frame(text)
        except Exception:
            _logger.debug("on_frame callback failed", exc_info=True)

    def _handle_close(self, generation: int, *, code: int | None, reason: str | None) -> None:
        if generation != self._generation:
            return
        # Called from the reader task itself; it is finishing.
        self._reader_task = None
        self._socket = None

        limit = self._config.max_reconnect_attempts
        if self._attempts >= limit:
            _logger.error(
                "Tracking connection lost (code=%s reason=%s); giving up after %d reconnect attempts",
                code,
                reason,
                self._attempts,
            )
            self._failure_message = RELOAD_MESSAGE
            self._set_state(ConnectivityState.FAILED)
            return

        delay = reconnect_delay(
            self._attempts,
            base=self._config.reconnect_base_delay,
            cap=self._config.reconnect_max_delay,
        )
        _logger.warning(
            "Tracking connection lost (code=%s reason=%s); reconnecting in %.1fs (attempt %d/%d)",
            code,
            reason,
            delay,
            self._attempts + 1,
            limit,
        )
        self._cancel_reconnect_timer()
        self._reconnect_delay = delay
        self._reconnect_timer = self._require_loop().call_later(delay, self._fire_reconnect, generation)
        self._set_state(ConnectivityState.RECONNECTING)

    def _fire_reconnect(self, generation: int) -> None:
        self._reconnect_timer = None
        self._reconnect_delay = None
        if generation != self._generation:
            return
        self._attempts += 1
        self._connect()

    # ------------------------------------------------------------------
    # Internal: heartbeat
    # ------------------------------------------------------------------

    async def _heartbeat_loop(self, generation: int) -> None:
        interval = self._config.heartbeat_interval
        while generation == self._generation:
            await asyncio.sleep(interval)
            await self._send_heartbeat(generation)

    async def _send_heartbeat(self, generation: int) -> bool:
        """Send one ping. A no-op unless this generation's socket is open.

        Send failures are not counted as connection failures; the close
        path is the only trigger for reconnection.
        """
        socket = self._socket
        if (
            generation != self._generation
            or self._state is not ConnectivityState.CONNECTED
            or socket is None
            or socket.closed
        ):
            _logger.debug("Heartbeat skipped: socket not open")
            return False
        try:
            await socket.send_json(PING_FRAME)
        except Exception:
            _logger.debug("Heartbeat send failed", exc_info=True)
            return False
        self._heartbeats_sent += 1
        _logger.debug("Heartbeat sent")
        return True
