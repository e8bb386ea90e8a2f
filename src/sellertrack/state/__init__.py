"""State layer.

The single source of truth for what the UI shows about a tracked pair:
inbound frames and session connectivity changes are reduced into
immutable :class:`TrackingSnapshot` values.
"""

from sellertrack.state.reducer import SnapshotListener, TrackingReducer
from sellertrack.state.snapshot import TrackingSnapshot

__all__ = ["SnapshotListener", "TrackingReducer", "TrackingSnapshot"]
