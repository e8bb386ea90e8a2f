from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from sellertrack.config import TrackingConfig


class FakeSocket:
    """In-memory TrackingSocket; the test plays the server."""

    def __init__(self) -> None:
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self.close_code: int | None = None
        self.close_calls = 0

    async def send_json(self, data: Mapping[str, Any]) -> None:
        if self.closed:
            raise ConnectionResetError("socket is closed")
        self.sent.append(dict(data))

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self.close_code = 1000
        self._inbox.put_nowait(None)

    def push(self, text: str) -> None:
        self._inbox.put_nowait(text)

    def drop(self, code: int = 1006) -> None:
        """Server-side / network close."""
        self.closed = True
        self.close_code = code
        self._inbox.put_nowait(None)

    def __aiter__(self) -> FakeSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._inbox.get()
        if item is None:
            raise StopAsyncIteration
        return item


class FakeConnector:
    """SocketConnector double.

    ``outcomes`` is consumed one entry per connect: an exception is raised,
    ``None`` means success. Once empty, ``fail_always`` decides.
    """

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []
        self.outcomes: list[BaseException | None] = []
        self.fail_always = False
        self.gate: asyncio.Event | None = None

    async def connect(self, url: str) -> FakeSocket:
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        outcome: BaseException | None
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        else:
            outcome = ConnectionRefusedError("connection refused") if self.fail_always else None
        if outcome is not None:
            raise outcome
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    @property
    def last_socket(self) -> FakeSocket:
        return self.sockets[-1]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def fast_config() -> TrackingConfig:
    """Real budgets scaled down 1000x: 1ms base, 30ms cap, 5 attempts."""
    return TrackingConfig(
        ws_base_url="ws://tracking.test/api/v1/users",
        heartbeat_interval=0.02,
        max_reconnect_attempts=5,
        reconnect_base_delay=0.001,
        reconnect_max_delay=0.03,
    )


@pytest.fixture
def wait() -> Callable[..., Any]:
    return wait_until
