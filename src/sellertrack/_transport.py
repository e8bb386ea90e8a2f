"""WebSocket and REST transports built on aiohttp."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from sellertrack._constants import TRACKING_PATH
from sellertrack._redact import redact_for_log
from sellertrack.config import TrackingConfig
from sellertrack.exceptions import TrackingApiError, TrackingAuthenticationError, TrackingTransportError
from sellertrack.models.frames import encode_frame

_logger = logging.getLogger(__name__)


def tracking_url(base_url: str, seller_id: str, shopkeeper_id: str) -> str:
    """Build the tracking endpoint URL for one seller/shopkeeper pair."""
    path = TRACKING_PATH.format(
        seller_id=quote(str(seller_id).strip(), safe=""),
        shopkeeper_id=quote(str(shopkeeper_id).strip(), safe=""),
    )
    return f"{base_url.rstrip('/')}{path}"


class TrackingSocket(Protocol):
    """One physical tracking connection.

    Iterating yields inbound text frames in arrival order and ends when the
    peer closes the connection.
    """

    @property
    def closed(self) -> bool: ...

    @property
    def close_code(self) -> int | None: ...

    async def send_json(self, data: Mapping[str, Any]) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str]: ...


class SocketConnector(Protocol):
    """Opens :class:`TrackingSocket` instances.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`AiohttpSocketConnector`) concrete.
    """

    async def connect(self, url: str) -> TrackingSocket: ...


class JsonTransport(Protocol):
    """Structural REST interface used by endpoint modules."""

    async def get_json(self, url: str, params: Mapping[str, Any] | None = None) -> Any: ...


class AiohttpTrackingSocket:
    """:class:`TrackingSocket` over an aiohttp client WebSocket."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        self._ws = ws

    @property
    def closed(self) -> bool:
        return self._ws.closed

    @property
    def close_code(self) -> int | None:
        return self._ws.close_code

    async def send_json(self, data: Mapping[str, Any]) -> None:
        await self._ws.send_str(encode_frame(data))

    async def close(self) -> None:
        await self._ws.close()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iter_text()

    async def _iter_text(self) -> AsyncIterator[str]:
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                yield msg.data
            elif msg.type == aiohttp.WSMsgType.BINARY:
                yield msg.data.decode("utf-8", errors="replace")
            elif msg.type == aiohttp.WSMsgType.ERROR:
                raise TrackingTransportError(f"WebSocket error: {self._ws.exception()}")


class AiohttpSocketConnector:
    """Open tracking sockets with a shared :class:`aiohttp.ClientSession`.

    Server pings are answered by aiohttp (``autoping``). Client-side
    protocol pings stay off; the session sends its own application
    heartbeat.
    """

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def connect(self, url: str) -> AiohttpTrackingSocket:
        _logger.debug("WS connect %s", url)
        try:
            ws = await self._http.ws_connect(url, autoping=True, heartbeat=None)
        except aiohttp.WSServerHandshakeError as exc:
            raise TrackingTransportError(
                f"WebSocket handshake to {url} failed: HTTP {exc.status}",
                status_code=exc.status,
                endpoint=url,
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise TrackingTransportError(f"WebSocket connect to {url} failed: {exc}", endpoint=url) from exc
        return AiohttpTrackingSocket(ws)


def _error_detail(body: Any) -> str | None:
    if isinstance(body, Mapping):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    return None


class RestTransport:
    """JSON-over-HTTP transport that attaches the bearer token."""

    def __init__(
        self,
        config: TrackingConfig,
        http_session: aiohttp.ClientSession,
        *,
        token_provider: Callable[[], str | None] | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json", "content-type": "application/json"}
        token = self._config.token
        if not token and self._token_provider is not None:
            token = self._token_provider()
        if token:
            headers["authorization"] = f"Bearer {token}"
        return headers

    async def get_json(self, url: str, params: Mapping[str, Any] | None = None) -> Any:
        headers = self._headers()
        _logger.debug("GET %s params=%s headers=%s", url, redact_for_log(params), redact_for_log(headers))
        timeout = aiohttp.ClientTimeout(total=self._config.http_timeout)
        try:
            async with self._http.get(url, params=params, headers=headers, timeout=timeout) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TrackingTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        try:
            body: Any = json.loads(text) if text else None
        except json.JSONDecodeError as exc:
            if status >= 400:
                body = None
            else:
                raise TrackingTransportError(
                    f"Invalid JSON from {url}: {text[:200]}",
                    status_code=status,
                    endpoint=url,
                ) from exc

        if status == 401:
            if self._on_unauthorized is not None:
                try:
                    self._on_unauthorized()
                except Exception:
                    _logger.debug("on_unauthorized callback failed", exc_info=True)
            raise TrackingAuthenticationError(
                f"HTTP 401 from {url}",
                status_code=status,
                endpoint=url,
                detail=_error_detail(body),
            )
        if status >= 400:
            detail = _error_detail(body)
            raise TrackingApiError(
                f"HTTP {status} from {url}: {detail or text[:200]}",
                status_code=status,
                endpoint=url,
                detail=detail,
            )

        _logger.debug("GET %s -> %s %s", url, status, redact_for_log(body))
        return body
