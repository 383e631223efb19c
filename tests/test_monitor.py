from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp import test_utils, web

from wifiwatch.config import WatchConfig
from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.models.events import RawSignal
from wifiwatch.models.snapshot import ConnectivitySnapshot
from wifiwatch.monitor import WifiMonitor


def _wifi(ssid: str) -> NetworkCapabilities:
    return NetworkCapabilities(transports=frozenset({Transport.WIFI}), wifi_info=WifiInfo(ssid=ssid))


class _PushSource:
    def __init__(self) -> None:
        self.capabilities: NetworkCapabilities | None = None
        self.callback = None
        self.transports: frozenset[Transport] | None = None

    def active_capabilities(self) -> NetworkCapabilities | None:
        return self.capabilities

    def legacy_wifi_info(self) -> WifiInfo | None:
        return None

    def subscribe(self, callback, transports: frozenset[Transport]) -> None:
        self.callback = callback
        self.transports = transports

    def unsubscribe(self) -> None:
        self.callback = None

    def emit(self, capabilities: NetworkCapabilities | None, signal: RawSignal) -> None:
        self.capabilities = capabilities
        assert self.callback is not None
        self.callback(signal)


async def _settle(monitor: WifiMonitor) -> None:
    # Threadsafe delivery needs one loop turn before the tracker sees the signal.
    await asyncio.sleep(0)
    await monitor.tracker.wait_idle()


async def _serve(statuses: list[int], bodies: list[dict]) -> test_utils.TestServer:
    async def handle(request: web.Request) -> web.Response:
        bodies.append(json.loads(await request.read()))
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        return web.Response(status=status)

    app = web.Application()
    app.router.add_post("/hook", handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_monitor_reports_connect_and_disconnect() -> None:
    bodies: list[dict] = []
    server = await _serve([200], bodies)
    source = _PushSource()
    config = WatchConfig(webhook_url=str(server.make_url("/hook")), settle_delay=0.05)
    try:
        async with WifiMonitor(config, source) as monitor:
            assert source.transports == frozenset({Transport.WIFI, Transport.CELLULAR})
            await _settle(monitor)
            assert monitor.last_known == ConnectivitySnapshot(connected=False)

            source.emit(_wifi("Home"), RawSignal.APPEARED)
            await _settle(monitor)
            source.emit(None, RawSignal.LOST)
            await _settle(monitor)
        assert source.callback is None
        assert not monitor.is_running
    finally:
        await server.close()

    assert [b["event"] for b in bodies] == ["wifi_connected", "wifi_disconnected"]
    assert bodies[0]["ssid"] == "Home"
    assert "ssid" not in bodies[1]


@pytest.mark.asyncio
async def test_delivery_failure_does_not_disturb_tracking() -> None:
    bodies: list[dict] = []
    server = await _serve([500, 200], bodies)
    source = _PushSource()
    config = WatchConfig(webhook_url=str(server.make_url("/hook")), settle_delay=0.0)
    try:
        async with WifiMonitor(config, source) as monitor:
            await _settle(monitor)

            source.emit(_wifi("Home"), RawSignal.APPEARED)
            await _settle(monitor)
            await asyncio.sleep(0.1)
            assert monitor.last_known == ConnectivitySnapshot(connected=True, ssid="Home")

            source.emit(_wifi("Office"), RawSignal.CAPABILITIES_CHANGED)
            await _settle(monitor)
            assert monitor.last_known == ConnectivitySnapshot(connected=True, ssid="Office")
    finally:
        await server.close()

    assert [b.get("ssid") for b in bodies] == ["Home", "Office"]


@pytest.mark.asyncio
async def test_burst_before_settle_sends_single_webhook() -> None:
    bodies: list[dict] = []
    server = await _serve([200], bodies)
    source = _PushSource()
    config = WatchConfig(webhook_url=str(server.make_url("/hook")), settle_delay=0.1)
    snapshots: list[ConnectivitySnapshot] = []
    try:
        async with WifiMonitor(config, source, on_snapshot=snapshots.append) as monitor:
            await _settle(monitor)
            for signal in (RawSignal.LOST, RawSignal.APPEARED, RawSignal.CAPABILITIES_CHANGED):
                source.emit(_wifi("Home"), signal)
                await asyncio.sleep(0.01)
            await _settle(monitor)
    finally:
        await server.close()

    assert len(bodies) == 1
    assert snapshots == [
        ConnectivitySnapshot(connected=False),
        ConnectivitySnapshot(connected=True, ssid="Home"),
    ]
