"""Connectivity state of a tracking session."""

from __future__ import annotations

from enum import StrEnum


class ConnectivityState(StrEnum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        """``failed`` and ``closed`` stay put until ``start()``/``reconnect()``."""
        return self in (ConnectivityState.FAILED, ConnectivityState.CLOSED)

    @property
    def is_live(self) -> bool:
        return self is ConnectivityState.CONNECTED
