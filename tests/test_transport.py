from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from sellertrack._transport import AiohttpSocketConnector, RestTransport, tracking_url
from sellertrack.config import TrackingConfig
from sellertrack.exceptions import TrackingApiError, TrackingTransportError


def test_tracking_url() -> None:
    url = tracking_url("ws://localhost:8002/api/v1/users/", "7", " 42 ")
    assert url == "ws://localhost:8002/api/v1/users/tracking/ws/track/7/42"


def test_tracking_url_quotes_ids() -> None:
    url = tracking_url("ws://h/api", "a/b", "c d")
    assert url == "ws://h/api/tracking/ws/track/a%2Fb/c%20d"


def _app() -> web.Application:
    async def _html(_request: web.Request) -> web.Response:
        return web.Response(text="<html>gateway</html>", content_type="text/html")

    async def _boom(_request: web.Request) -> web.Response:
        return web.json_response({"message": "database unavailable"}, status=503)

    async def _not_a_socket(_request: web.Request) -> web.Response:
        return web.Response(status=403, text="forbidden")

    app = web.Application()
    app.router.add_get("/html", _html)
    app.router.add_get("/boom", _boom)
    app.router.add_get("/ws", _not_a_socket)
    return app


@pytest.mark.asyncio
async def test_rest_transport_error_mapping() -> None:
    server = TestServer(_app())
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as http:
            rest = RestTransport(TrackingConfig(token="jwt"), http)

            with pytest.raises(TrackingTransportError, match="Invalid JSON"):
                await rest.get_json(str(server.make_url("/html")))

            with pytest.raises(TrackingApiError) as excinfo:
                await rest.get_json(str(server.make_url("/boom")))
            assert excinfo.value.status_code == 503
            assert excinfo.value.detail == "database unavailable"
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_socket_connector_maps_handshake_failure() -> None:
    server = TestServer(_app())
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as http:
            connector = AiohttpSocketConnector(http)
            url = "ws" + str(server.make_url("/ws"))[len("http") :]
            with pytest.raises(TrackingTransportError) as excinfo:
                await connector.connect(url)
            assert excinfo.value.status_code == 403
            assert excinfo.value.endpoint == url
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_socket_answers_server_protocol_pings() -> None:
    async def _pinging(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=0.05)
        await ws.prepare(request)
        async for _msg in ws:
            pass
        return ws

    app = web.Application()
    app.router.add_get("/ws", _pinging)
    server = TestServer(app)
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as http:
            socket = await AiohttpSocketConnector(http).connect("ws" + str(server.make_url("/ws"))[len("http") :])
            received: list[str] = []

            async def _pump() -> None:
                async for text in socket:
                    received.append(text)

            pump = asyncio.create_task(_pump())
            # Several server ping intervals; an unanswered ping closes after heartbeat / 2.
            await asyncio.sleep(0.4)

            assert not socket.closed
            assert socket.close_code is None
            assert not pump.done()

            await socket.close()
            await asyncio.wait_for(pump, 1.0)
            assert received == []
    finally:
        await server.close()
