#!/usr/bin/env python3
"""Live tracking watcher for one seller/shopkeeper pair.

Attaches a TrackingClient to the tracking WebSocket and prints every
snapshot (connectivity changes, location updates, server errors) until
Ctrl+C or ``--duration`` elapses, then prints a summary.

Use this to check heartbeat/reconnect behaviour against a real server.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from sellertrack import ConnectivityState, TrackingClient, TrackingConfig, TrackingSnapshot  # noqa: E402


@dataclass
class WatchStats:
    started_at: float
    snapshots: int = 0
    location_updates: int = 0
    last_frames_applied: int = 0
    reconnects: int = 0

    def on_snapshot(self, snapshot: TrackingSnapshot) -> None:
        self.snapshots += 1
        if snapshot.frames_applied > self.last_frames_applied and snapshot.location is not None:
            self.location_updates += 1
        self.last_frames_applied = snapshot.frames_applied


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch the live tracking feed for one seller/shopkeeper pair.")
    parser.add_argument("--seller", required=True, help="Seller id.")
    parser.add_argument("--shopkeeper", required=True, help="Shopkeeper id.")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--ws-url",
        default=None,
        help="Override SELLERTRACK_WS_URL (e.g. ws://localhost:8002/api/v1/users).",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print full snapshot JSON instead of a one-line summary.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable DEBUG logging for sellertrack.",
    )
    return parser.parse_args()


def _format(snapshot: TrackingSnapshot) -> str:
    parts = [f"state={snapshot.connectivity.value}"]
    loc = snapshot.location
    if loc is not None:
        parts.append(f"lat={loc.latitude:.5f} lon={loc.longitude:.5f} speed={loc.speed} status={loc.status.value}")
    tracking = snapshot.tracking
    if tracking is not None:
        parts.append(f"distance_km={tracking.distance_km} eta_min={tracking.eta_minutes} moving={snapshot.is_moving}")
    if snapshot.error:
        parts.append(f"error={snapshot.error!r}")
    return " ".join(parts)


def _print_summary(stats: WatchStats) -> None:
    elapsed = time.time() - stats.started_at
    print("")
    print("[watch] summary")
    print(f"[watch] runtime_seconds={elapsed:.1f}")
    print(f"[watch] snapshots={stats.snapshots}")
    print(f"[watch] location_updates={stats.location_updates}")
    print(f"[watch] reconnects={stats.reconnects}")


async def _run(args: argparse.Namespace) -> int:
    overrides = {"ws_base_url": args.ws_url} if args.ws_url else {}
    config = TrackingConfig.from_env(**overrides)
    stats = WatchStats(started_at=time.time())
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    async with TrackingClient(config) as client:

        def _on_snapshot(snapshot: TrackingSnapshot) -> None:
            stats.on_snapshot(snapshot)
            if snapshot.connectivity is ConnectivityState.RECONNECTING:
                stats.reconnects += 1
            if args.raw:
                print(json.dumps(snapshot.model_dump(mode="json"), ensure_ascii=False))
            else:
                print(f"[watch] {_format(snapshot)}")
            if snapshot.connectivity is ConnectivityState.FAILED:
                stop_event.set()

        client.subscribe(_on_snapshot)
        client.track(args.seller, args.shopkeeper)
        print(f"[watch] tracking seller={args.seller} shopkeeper={args.shopkeeper} ws={config.ws_base_url}")

        timeout = args.duration if args.duration > 0 else None
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout)

    _print_summary(stats)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(_main())
