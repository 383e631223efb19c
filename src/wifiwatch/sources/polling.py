"""Polling connectivity source.

Platforms without push notifications are probed periodically; the source
compares consecutive probe results and turns differences into raw signals.
Signals are deliberately coarse: the tracker re-queries the authoritative
state anyway.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from wifiwatch._constants import DEFAULT_POLL_INTERVAL
from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.models.events import RawSignal
from wifiwatch.sources import SignalCallback

_logger = logging.getLogger(__name__)

CapabilityProbe = Callable[[], NetworkCapabilities | None]
LegacyProbe = Callable[[], WifiInfo | None]


def _relevant_view(
    capabilities: NetworkCapabilities | None,
    transports: frozenset[Transport],
) -> tuple[frozenset[Transport], WifiInfo | None]:
    if capabilities is None:
        return frozenset(), None
    present = capabilities.transports & transports
    wifi_info = capabilities.wifi_info if Transport.WIFI in present else None
    return present, wifi_info


def classify_change(
    previous: NetworkCapabilities | None,
    current: NetworkCapabilities | None,
    transports: frozenset[Transport],
) -> RawSignal | None:
    """Map two consecutive probe results to a signal, or ``None`` if nothing relevant changed."""
    prev_present, prev_wifi = _relevant_view(previous, transports)
    cur_present, cur_wifi = _relevant_view(current, transports)

    if not prev_present and not cur_present:
        return None
    if not prev_present:
        return RawSignal.APPEARED
    if not cur_present:
        return RawSignal.LOST
    if prev_present != cur_present or prev_wifi != cur_wifi:
        return RawSignal.CAPABILITIES_CHANGED
    return None


class PollingSource:
    """Connectivity source driven by a periodic capability probe.

    Parameters
    ----------
    probe : callable
        Returns the active network's capabilities, ``None`` if there is no
        active network. May raise ``ConnectivityQueryError``. Runs in a
        worker thread while polling and inline for tracker queries.
    interval : float
        Seconds between probes.
    legacy_probe : callable, optional
        Device-level Wi-Fi info used as the last SSID fallback.
    """

    def __init__(
        self,
        probe: CapabilityProbe,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        legacy_probe: LegacyProbe | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._probe = probe
        self._legacy_probe = legacy_probe
        self._interval = interval
        self._callback: SignalCallback | None = None
        self._transports: frozenset[Transport] = frozenset()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def active_capabilities(self) -> NetworkCapabilities | None:
        return self._probe()

    def legacy_wifi_info(self) -> WifiInfo | None:
        if self._legacy_probe is None:
            return None
        return self._legacy_probe()

    def subscribe(self, callback: SignalCallback, transports: frozenset[Transport]) -> None:
        """Start polling on the running loop."""
        self.unsubscribe()
        self._callback = callback
        self._transports = transports
        self._task = asyncio.get_running_loop().create_task(self._run(), name="wifiwatch-poll")
        _logger.debug(
            "Polling every %.1fs for %s",
            self._interval,
            ",".join(sorted(t.value for t in transports)),
        )

    def unsubscribe(self) -> None:
        task = self._task
        self._task = None
        self._callback = None
        if task is not None and not task.done():
            task.cancel()

    async def _probe_once(self) -> NetworkCapabilities | None:
        try:
            return await asyncio.to_thread(self._probe)
        except Exception:
            _logger.debug("Capability probe failed", exc_info=True)
            return None

    async def _run(self) -> None:
        previous = await self._probe_once()
        while True:
            await asyncio.sleep(self._interval)
            current = await self._probe_once()
            signal = classify_change(previous, current, self._transports)
            previous = current
            if signal is None or self._callback is None:
                continue
            _logger.debug("Probe change: %s", signal)
            try:
                self._callback(signal)
            except Exception:
                _logger.debug("Signal callback failed", exc_info=True)
