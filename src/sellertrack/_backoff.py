"""Reconnect backoff policy."""

from __future__ import annotations

from sellertrack._constants import RECONNECT_BASE_DELAY, RECONNECT_MAX_DELAY


def reconnect_delay(
    attempt: int,
    *,
    base: float = RECONNECT_BASE_DELAY,
    cap: float = RECONNECT_MAX_DELAY,
) -> float:
    """Seconds to wait before reconnect attempt *attempt* (0-based).

    ``min(base * 2**attempt, cap)``; with the defaults 1, 2, 4, 8, 16, 30, 30, ...
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    # float * 2**attempt overflows for very large attempts.
    exponent = min(attempt, 64)
    return min(base * (2**exponent), cap)
