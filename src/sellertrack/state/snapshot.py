"""Externally visible tracking state."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from sellertrack.models.connectivity import ConnectivityState
from sellertrack.models.location import LocationSample
from sellertrack.models.tracking import TrackingMetrics


class TrackingSnapshot(BaseModel):
    """What the UI renders for one tracked pair.

    Frozen; the reducer swaps in a new instance for every change, so a
    reader holding a snapshot never sees ``location`` from one frame next
    to ``tracking`` from another.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    location: LocationSample | None = None
    tracking: TrackingMetrics | None = None
    connectivity: ConnectivityState = ConnectivityState.CLOSED
    error: str | None = None
    last_status_message: str | None = None
    frames_applied: int = 0
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_live(self) -> bool:
        return self.connectivity.is_live

    @property
    def is_moving(self) -> bool:
        """Producer's ``is_moving`` flag when present, else ``speed > 0``."""
        if self.tracking is not None and self.tracking.is_moving is not None:
            return self.tracking.is_moving
        if self.location is not None and self.location.speed is not None:
            return self.location.speed > 0
        return False
