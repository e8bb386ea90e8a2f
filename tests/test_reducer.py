from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from sellertrack._constants import RELOAD_MESSAGE
from sellertrack.models.connectivity import ConnectivityState
from sellertrack.state.reducer import TrackingReducer
from sellertrack.state.snapshot import TrackingSnapshot


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _location_frame(lat: float, lon: float, **extra: Any) -> str:
    frame: dict[str, Any] = {"type": "location_update", "location": {"latitude": lat, "longitude": lon}}
    frame.update(extra)
    return json.dumps(frame)


@pytest.fixture
def reducer() -> TrackingReducer:
    return TrackingReducer(clock=_Clock())


def test_initial_snapshot_is_empty(reducer: TrackingReducer) -> None:
    snap = reducer.snapshot
    assert snap.location is None
    assert snap.tracking is None
    assert snap.connectivity is ConnectivityState.CLOSED
    assert snap.error is None
    assert snap.is_moving is False


def test_location_update_replaces_location_and_tracking_together(reducer: TrackingReducer) -> None:
    reducer.apply_connectivity(ConnectivityState.CONNECTED)
    before = reducer.snapshot

    snap = reducer.apply_raw(
        _location_frame(
            4.71,
            -74.07,
            tracking={"distance_to_shopkeeper_km": 1.2, "estimated_arrival_minutes": 5, "is_moving": True},
        )
    )

    assert snap is reducer.snapshot
    assert snap is not before
    assert snap.location is not None
    assert snap.location.coordinates == (4.71, -74.07)
    assert snap.tracking is not None
    assert snap.tracking.distance_km == 1.2
    assert snap.tracking.eta_minutes == 5
    assert snap.is_moving is True
    assert snap.connectivity is ConnectivityState.CONNECTED
    assert snap.frames_applied == 1
    # The previous snapshot is untouched.
    assert before.location is None


def test_location_update_without_tracking_keeps_previous_metrics(reducer: TrackingReducer) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0, tracking={"distance_to_shopkeeper_km": 3.0}))
    snap = reducer.apply_raw(_location_frame(1.5, 2.5))

    assert snap is not None
    assert snap.location is not None
    assert snap.location.latitude == 1.5
    assert snap.tracking is not None
    assert snap.tracking.distance_km == 3.0


def test_last_frame_wins(reducer: TrackingReducer) -> None:
    for lat in (1.0, 2.0, 3.0):
        reducer.apply_raw(_location_frame(lat, 0.0))
    assert reducer.snapshot.location is not None
    assert reducer.snapshot.location.latitude == 3.0
    assert reducer.snapshot.frames_applied == 3


def test_connection_status_is_informational(reducer: TrackingReducer, caplog: pytest.LogCaptureFixture) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0))
    before = reducer.snapshot

    with caplog.at_level(logging.INFO, logger="sellertrack.state.reducer"):
        snap = reducer.apply_raw('{"type": "connection_status", "message": "Connected to seller 7"}')

    assert snap is not None
    assert snap.location == before.location
    assert snap.tracking == before.tracking
    assert snap.error == before.error
    assert snap.last_status_message == "Connected to seller 7"
    assert "Connected to seller 7" in caplog.text


def test_error_frame_sets_error_until_next_location(reducer: TrackingReducer) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0))
    snap = reducer.apply_raw('{"type": "error", "message": "Seller not found"}')

    assert snap is not None
    assert snap.error == "Seller not found"
    # Location survives a server error.
    assert snap.location is not None

    snap = reducer.apply_raw(_location_frame(1.1, 2.1))
    assert snap is not None
    assert snap.error is None


@pytest.mark.parametrize(
    "data",
    [
        "garbage",
        '{"type": "unknown"}',
        '{"type": "location_update", "location": {"longitude": 2}}',
        '{"type": "location_update", "location": {"latitude": 91, "longitude": 2}}',
        '{"type": "location_update", "location": {"latitude": 1, "longitude": -181}}',
        "[]",
    ],
)
def test_malformed_frames_are_dropped(reducer: TrackingReducer, data: str) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0))
    before = reducer.snapshot

    assert reducer.apply_raw(data) is None
    assert reducer.snapshot is before
    assert reducer.frames_dropped == 1


def test_connected_clears_error(reducer: TrackingReducer) -> None:
    reducer.apply_raw('{"type": "error", "message": "boom"}')
    snap = reducer.apply_connectivity(ConnectivityState.CONNECTED)
    assert snap.error is None
    assert snap.is_live


def test_failed_sets_reload_message(reducer: TrackingReducer) -> None:
    snap = reducer.apply_connectivity(ConnectivityState.FAILED)
    assert snap.connectivity is ConnectivityState.FAILED
    assert snap.error == RELOAD_MESSAGE

    snap = reducer.apply_connectivity(ConnectivityState.FAILED, "Server unreachable")
    assert snap.error == "Server unreachable"


def test_reconnecting_keeps_last_location(reducer: TrackingReducer) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0))
    snap = reducer.apply_connectivity(ConnectivityState.RECONNECTING)
    assert snap.location is not None
    assert not snap.is_live


def test_is_moving_falls_back_to_speed(reducer: TrackingReducer) -> None:
    moving = reducer.apply_raw(
        json.dumps({"type": "location_update", "location": {"latitude": 1, "longitude": 2, "speed": 3}})
    )
    assert moving is not None and moving.is_moving is True

    parked = reducer.apply_raw(
        json.dumps({"type": "location_update", "location": {"latitude": 1, "longitude": 2, "speed": 0}})
    )
    assert parked is not None and parked.is_moving is False


def test_is_moving_uses_speed_when_tracking_has_no_flag(reducer: TrackingReducer) -> None:
    snap = reducer.apply_raw(
        json.dumps(
            {
                "type": "location_update",
                "location": {"latitude": 4.71, "longitude": -74.07, "speed": 12},
                "tracking": {"distance_to_shopkeeper_km": 1.0},
            }
        )
    )
    assert snap is not None
    assert snap.tracking is not None
    assert snap.tracking.is_moving is None
    assert snap.is_moving is True


def test_explicit_is_moving_flag_wins_over_speed(reducer: TrackingReducer) -> None:
    snap = reducer.apply_raw(
        json.dumps(
            {
                "type": "location_update",
                "location": {"latitude": 4.71, "longitude": -74.07, "speed": 12},
                "tracking": {"is_moving": False},
            }
        )
    )
    assert snap is not None and snap.is_moving is False


@pytest.mark.parametrize("tracking", ["unavailable", [1, 2], 42])
def test_bad_tracking_payload_keeps_location(
    reducer: TrackingReducer,
    caplog: pytest.LogCaptureFixture,
    tracking: Any,
) -> None:
    reducer.apply_raw(_location_frame(1.0, 2.0, tracking={"distance_to_shopkeeper_km": 3.0}))

    with caplog.at_level(logging.DEBUG, logger="sellertrack.models.frames"):
        snap = reducer.apply_raw(
            json.dumps(
                {
                    "type": "location_update",
                    "location": {"latitude": 4.71, "longitude": -74.07, "speed": 12},
                    "tracking": tracking,
                }
            )
        )

    assert snap is not None
    assert snap.location is not None
    assert snap.location.coordinates == (4.71, -74.07)
    # Previous metrics are kept, as for a frame without tracking.
    assert snap.tracking is not None
    assert snap.tracking.distance_km == 3.0
    assert reducer.frames_dropped == 0
    assert "Ignoring non-object tracking payload" in caplog.text


def test_reset_forgets_pair_state(reducer: TrackingReducer) -> None:
    reducer.apply_connectivity(ConnectivityState.CONNECTED)
    reducer.apply_raw(_location_frame(1.0, 2.0, tracking={"distance_to_shopkeeper_km": 1}))
    snap = reducer.reset()

    assert snap.location is None
    assert snap.tracking is None
    assert snap.frames_applied == 0
    assert snap.connectivity is ConnectivityState.CONNECTED


def test_subscribers_receive_every_snapshot(reducer: TrackingReducer) -> None:
    seen: list[TrackingSnapshot] = []
    unsubscribe = reducer.subscribe(seen.append)

    reducer.apply_connectivity(ConnectivityState.CONNECTING)
    reducer.apply_raw(_location_frame(1.0, 2.0))
    reducer.apply_raw("garbage")
    unsubscribe()
    reducer.apply_connectivity(ConnectivityState.CLOSED)

    assert [s.connectivity for s in seen] == [ConnectivityState.CONNECTING, ConnectivityState.CONNECTING]
    assert seen[-1] is not seen[0]
    assert seen[0].updated_at < seen[1].updated_at


def test_failing_subscriber_does_not_block_others(reducer: TrackingReducer) -> None:
    seen: list[TrackingSnapshot] = []

    def _explode(_snapshot: TrackingSnapshot) -> None:
        raise RuntimeError("listener bug")

    reducer.subscribe(_explode)
    reducer.subscribe(seen.append)
    reducer.apply_raw(_location_frame(1.0, 2.0))

    assert len(seen) == 1
