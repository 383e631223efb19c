from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from wifiwatch.dispatcher import WebhookDispatcher
from wifiwatch.models.events import TransitionEvent, TransitionKind


@dataclass
class _Endpoint:
    statuses: list[int] = field(default_factory=lambda: [200])
    received: list[tuple[str, bytes]] = field(default_factory=list)
    release: asyncio.Event | None = None

    async def handle(self, request: web.Request) -> web.Response:
        self.received.append((request.headers.get("Content-Type", ""), await request.read()))
        if self.release is not None:
            await self.release.wait()
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return web.Response(status=status)


async def _serve(endpoint: _Endpoint) -> test_utils.TestServer:
    app = web.Application()
    app.router.add_post("/hook", endpoint.handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


def _connected(ssid: str = "Home") -> TransitionEvent:
    return TransitionEvent(event=TransitionKind.CONNECTED, ssid=ssid)


@pytest.mark.asyncio
async def test_send_posts_json_once() -> None:
    endpoint = _Endpoint()
    server = await _serve(endpoint)
    try:
        async with WebhookDispatcher(str(server.make_url("/hook"))) as dispatcher:
            assert await dispatcher.send(_connected()) is True
    finally:
        await server.close()

    assert len(endpoint.received) == 1
    content_type, body = endpoint.received[0]
    assert content_type == "application/json; charset=utf-8"
    payload = json.loads(body)
    assert payload["event"] == "wifi_connected"
    assert payload["ssid"] == "Home"
    assert "timestamp" in payload


@pytest.mark.asyncio
async def test_non_success_status_is_logged_and_not_retried(caplog: pytest.LogCaptureFixture) -> None:
    endpoint = _Endpoint(statuses=[500])
    server = await _serve(endpoint)
    try:
        async with WebhookDispatcher(str(server.make_url("/hook"))) as dispatcher:
            with caplog.at_level(logging.WARNING, logger="wifiwatch.dispatcher"):
                assert await dispatcher.send(_connected()) is False
    finally:
        await server.close()

    assert len(endpoint.received) == 1
    assert "HTTP 500" in caplog.text


@pytest.mark.asyncio
async def test_connection_error_returns_false() -> None:
    server = await _serve(_Endpoint())
    url = str(server.make_url("/hook"))
    await server.close()

    async with WebhookDispatcher(url, timeout=2.0) as dispatcher:
        assert await dispatcher.send(_connected()) is False


@pytest.mark.asyncio
async def test_dispatch_does_not_block_caller() -> None:
    endpoint = _Endpoint(release=asyncio.Event())
    server = await _serve(endpoint)
    try:
        dispatcher = WebhookDispatcher(str(server.make_url("/hook")))
        dispatcher.dispatch(_connected())
        assert dispatcher.in_flight == 1
        assert endpoint.received == []

        assert endpoint.release is not None
        endpoint.release.set()
        await dispatcher.aclose(grace=5.0)
    finally:
        await server.close()

    assert dispatcher.in_flight == 0
    assert len(endpoint.received) == 1


@pytest.mark.asyncio
async def test_one_failed_dispatch_does_not_affect_the_next() -> None:
    endpoint = _Endpoint(statuses=[500, 200])
    server = await _serve(endpoint)
    try:
        dispatcher = WebhookDispatcher(str(server.make_url("/hook")))
        dispatcher.dispatch(_connected("Home"))
        await asyncio.sleep(0.1)
        dispatcher.dispatch(TransitionEvent(event=TransitionKind.DISCONNECTED))
        await dispatcher.aclose(grace=5.0)
    finally:
        await server.close()

    events = [json.loads(body)["event"] for _ct, body in endpoint.received]
    assert events == ["wifi_connected", "wifi_disconnected"]


@pytest.mark.asyncio
async def test_aclose_abandons_deliveries_after_grace(caplog: pytest.LogCaptureFixture) -> None:
    endpoint = _Endpoint(release=asyncio.Event())
    server = await _serve(endpoint)
    try:
        dispatcher = WebhookDispatcher(str(server.make_url("/hook")))
        dispatcher.dispatch(_connected())
        for _ in range(100):
            if endpoint.received:
                break
            await asyncio.sleep(0.01)

        with caplog.at_level(logging.WARNING, logger="wifiwatch.dispatcher"):
            await dispatcher.aclose(grace=0.0)
        assert dispatcher.in_flight == 0
        assert "Abandoned 1" in caplog.text
    finally:
        assert endpoint.release is not None
        endpoint.release.set()
        await server.close()


@pytest.mark.asyncio
async def test_dispatch_after_close_is_dropped() -> None:
    dispatcher = WebhookDispatcher("http://127.0.0.1:9/hook", dry_run=True)
    await dispatcher.aclose()
    dispatcher.dispatch(_connected())
    assert dispatcher.in_flight == 0


@pytest.mark.asyncio
async def test_dry_run_skips_network(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = WebhookDispatcher("http://127.0.0.1:9/hooks/secret-token-123", dry_run=True)
    with caplog.at_level(logging.INFO, logger="wifiwatch.dispatcher"):
        assert await dispatcher.send(_connected()) is True
    await dispatcher.aclose()
    assert "wifi_connected" in caplog.text
    assert "secret-token-123" not in caplog.text


@pytest.mark.asyncio
async def test_external_session_is_left_open() -> None:
    async with aiohttp.ClientSession() as session:
        dispatcher = WebhookDispatcher("http://127.0.0.1:9/hook", session=session, dry_run=True)
        await dispatcher.aclose()
        assert not session.closed
