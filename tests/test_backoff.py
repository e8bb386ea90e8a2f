from __future__ import annotations

import pytest

from sellertrack._backoff import reconnect_delay


def test_default_schedule_doubles_from_one_second() -> None:
    assert [reconnect_delay(n) for n in range(5)] == [1.0, 2.0, 4.0, 8.0, 16.0]


def test_default_schedule_caps_at_thirty_seconds() -> None:
    assert reconnect_delay(5) == 30.0
    assert reconnect_delay(6) == 30.0


def test_huge_attempt_does_not_overflow() -> None:
    assert reconnect_delay(10_000) == 30.0


def test_custom_base_and_cap() -> None:
    assert reconnect_delay(0, base=0.5, cap=3.0) == 0.5
    assert reconnect_delay(3, base=0.5, cap=3.0) == 3.0


def test_negative_attempt_rejected() -> None:
    with pytest.raises(ValueError):
        reconnect_delay(-1)
