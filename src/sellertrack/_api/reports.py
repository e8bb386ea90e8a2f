"""Reports service metrics endpoint."""

from __future__ import annotations

from sellertrack._transport import JsonTransport
from sellertrack.config import TrackingConfig
from sellertrack.exceptions import TrackingApiError
from sellertrack.models.metrics import ReportMetrics


async def get_metrics(config: TrackingConfig, transport: JsonTransport) -> ReportMetrics:
    """Fetch the aggregate coverage/inventory counters."""
    url = f"{config.report_base_url.rstrip('/')}/metrics"
    body = await transport.get_json(url)
    if not isinstance(body, dict):
        raise TrackingApiError("Unexpected response shape from /metrics", endpoint="/metrics")
    return ReportMetrics.model_validate(body)
