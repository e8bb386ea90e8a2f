"""Frame reducer.

This is the only component allowed to produce :class:`TrackingSnapshot`
values. Frames are applied strictly in the order they are handed in;
there are no sequence numbers, so the last frame to arrive wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from sellertrack._constants import RELOAD_MESSAGE
from sellertrack._redact import redact_for_log
from sellertrack.exceptions import TrackingProtocolError
from sellertrack.models.connectivity import ConnectivityState
from sellertrack.models.frames import ConnectionStatusFrame, ErrorFrame, LocationUpdateFrame, parse_frame
from sellertrack.state.snapshot import TrackingSnapshot

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[[TrackingSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrackingReducer:
    """Turn inbound frames and connectivity changes into snapshots.

    Listeners registered with :meth:`subscribe` receive every new snapshot.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._snapshot = TrackingSnapshot(updated_at=clock())
        self._listeners: list[SnapshotListener] = []
        self._frames_dropped = 0

    @property
    def snapshot(self) -> TrackingSnapshot:
        return self._snapshot

    @property
    def frames_dropped(self) -> int:
        """Malformed frames discarded so far (diagnostic only)."""
        return self._frames_dropped

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _publish(self, **changes: Any) -> TrackingSnapshot:
        changes["updated_at"] = self._clock()
        snapshot = self._snapshot.model_copy(update=changes)
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)
        return snapshot

    def apply_raw(self, data: str | bytes | Mapping[str, Any]) -> TrackingSnapshot | None:
        """Parse and apply one frame. Returns ``None`` if it was dropped."""
        try:
            frame = parse_frame(data)
        except TrackingProtocolError as exc:
            self._frames_dropped += 1
            _logger.debug(
                "Dropping malformed tracking frame (%s): %s",
                exc,
                redact_for_log(data if isinstance(data, Mapping) else str(data)),
            )
            return None
        return self.apply_frame(frame)

    def apply_frame(self, frame: LocationUpdateFrame | ConnectionStatusFrame | ErrorFrame) -> TrackingSnapshot:
        """Apply exactly one parsed frame."""
        applied = self._snapshot.frames_applied + 1

        if isinstance(frame, LocationUpdateFrame):
            _logger.debug(
                "Location update lat=%s lon=%s status=%s",
                frame.location.latitude,
                frame.location.longitude,
                frame.location.status.value,
            )
            changes: dict[str, Any] = {"location": frame.location, "error": None, "frames_applied": applied}
            if frame.tracking is not None:
                changes["tracking"] = frame.tracking
            return self._publish(**changes)

        if isinstance(frame, ConnectionStatusFrame):
            _logger.info("Tracking server status: %s", frame.message)
            return self._publish(last_status_message=frame.message, frames_applied=applied)

        _logger.warning("Tracking server error: %s", frame.message)
        return self._publish(error=frame.message, frames_applied=applied)

    def apply_connectivity(self, state: ConnectivityState, message: str | None = None) -> TrackingSnapshot:
        """Record a session state change.

        ``connected`` clears the last error; ``failed`` sets it to *message*
        (or the reload instruction).
        """
        changes: dict[str, Any] = {"connectivity": state}
        if state is ConnectivityState.CONNECTED:
            changes["error"] = None
        elif state is ConnectivityState.FAILED:
            changes["error"] = message or RELOAD_MESSAGE
        return self._publish(**changes)

    def reset(self) -> TrackingSnapshot:
        """Forget location, metrics and error (e.g. when the tracked pair changes)."""
        return self._publish(
            location=None,
            tracking=None,
            error=None,
            last_status_message=None,
            frames_applied=0,
        )
