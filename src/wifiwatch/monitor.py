"""Host-facing lifecycle: source -> tracker -> dispatcher."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from wifiwatch._redact import redact_url
from wifiwatch.config import WatchConfig
from wifiwatch.dispatcher import WebhookDispatcher
from wifiwatch.exceptions import WifiWatchError
from wifiwatch.models.events import RawSignal
from wifiwatch.models.snapshot import ConnectivitySnapshot
from wifiwatch.sources import ConnectivitySource
from wifiwatch.tracker import DebouncedStateTracker, SnapshotListener

_logger = logging.getLogger(__name__)


class WifiMonitor:
    """Reports Wi-Fi transitions of *source* to the configured webhook.

    Usage::

        async with WifiMonitor(config, source) as monitor:
            await stop_event.wait()
    """

    def __init__(
        self,
        config: WatchConfig,
        source: ConnectivitySource,
        *,
        session: aiohttp.ClientSession | None = None,
        on_snapshot: SnapshotListener | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._session = session
        self._on_snapshot = on_snapshot
        self._dispatcher: WebhookDispatcher | None = None
        self._tracker: DebouncedStateTracker | None = None

    async def __aenter__(self) -> WifiMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._tracker is not None

    @property
    def last_known(self) -> ConnectivitySnapshot | None:
        return self._tracker.last_known if self._tracker is not None else None

    @property
    def tracker(self) -> DebouncedStateTracker:
        if self._tracker is None:
            raise WifiWatchError("Monitor not started. Use 'async with WifiMonitor(...) as monitor:'")
        return self._tracker

    async def start(self) -> None:
        """Subscribe to the source and record the baseline state."""
        if self._tracker is not None:
            return
        loop = asyncio.get_running_loop()
        dispatcher = WebhookDispatcher.from_config(self._config, session=self._session)
        tracker = DebouncedStateTracker(
            self._source,
            dispatcher.dispatch,
            settle_delay=self._config.settle_delay,
            loop=loop,
            on_snapshot=self._on_snapshot,
        )
        self._dispatcher = dispatcher
        self._tracker = tracker

        self._source.subscribe(tracker.signal_threadsafe, self._config.transports)
        # Platforms only push on change; sample once so the baseline exists.
        tracker.on_raw_signal(RawSignal.CAPABILITIES_CHANGED)
        _logger.info(
            "Monitoring %s, reporting to %s (settle delay %.1fs)",
            ",".join(sorted(t.value for t in self._config.transports)),
            redact_url(self._config.webhook_url),
            self._config.settle_delay,
        )

    async def stop(self) -> None:
        """Unsubscribe, cancel the pending evaluation and drain deliveries."""
        tracker = self._tracker
        dispatcher = self._dispatcher
        self._tracker = None
        self._dispatcher = None
        if tracker is None:
            return
        try:
            self._source.unsubscribe()
        except Exception:
            _logger.debug("Source unsubscribe failed", exc_info=True)
        tracker.close()
        if dispatcher is not None:
            await dispatcher.aclose(self._config.shutdown_grace)
        _logger.info("Monitoring stopped")
