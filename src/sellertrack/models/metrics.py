"""Aggregate metrics from the reports service."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from sellertrack._normalize import safe_float, safe_int, safe_str
from sellertrack.models._base import TrackingBaseModel

_COUNT_FIELDS = (
    "total_cities",
    "total_zones",
    "total_sellers",
    "total_shopkeepers",
    "active_assignments",
    "unassigned_shopkeepers",
    "total_inventories",
    "low_stock_inventories",
    "normal_stock_inventories",
    "out_of_stock_inventories",
)


class ReportMetrics(TrackingBaseModel):
    """Coverage/inventory counters shown on the console dashboard.

    Counters the client does not model are kept in ``extra`` so a newer
    reports service does not lose data.
    """

    total_cities: int | None = None
    total_zones: int | None = None
    total_sellers: int | None = None
    total_shopkeepers: int | None = None
    active_assignments: int | None = None
    unassigned_shopkeepers: int | None = None
    avg_shopkeepers_per_seller: float | None = None
    total_inventories: int | None = None
    low_stock_inventories: int | None = None
    normal_stock_inventories: int | None = None
    out_of_stock_inventories: int | None = None
    total_stock_value: float | None = None
    system_health: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extra(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        known = set(cls.model_fields) | {"raw"}
        extra = {k: v for k, v in values.items() if k not in known}
        if not extra:
            return values
        return {**{k: v for k, v in values.items() if k in known}, "extra": extra, "raw": values.get("raw", values)}

    @field_validator(*_COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("avg_shopkeepers_per_seller", "total_stock_value", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("system_health", mode="before")
    @classmethod
    def _coerce_health(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def coverage_ratio(self) -> float | None:
        """Share of shopkeepers with an active seller assignment."""
        if self.total_shopkeepers is None or self.active_assignments is None or self.total_shopkeepers == 0:
            return None
        return self.active_assignments / self.total_shopkeepers
