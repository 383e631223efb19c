"""Debounced connectivity state tracker.

Raw signals arrive in bursts while a device hands over between networks.
The tracker collapses each burst into a single evaluation, scheduled
``settle_delay`` seconds after the *last* signal, and only reports a
transition when the settled state differs from the last confirmed one.

Signal handling runs on one asyncio event loop. Sampling queries the
platform and may block, so it runs in a worker thread; comparison and
emission then happen on the loop with no suspension point after the sample
returns, so once a pending evaluation is cancelled it can never emit.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from wifiwatch._constants import DEFAULT_SETTLE_DELAY
from wifiwatch.exceptions import WifiWatchError
from wifiwatch.models.capabilities import Transport
from wifiwatch.models.events import RawSignal, TransitionEvent, local_now
from wifiwatch.models.snapshot import ConnectivitySnapshot
from wifiwatch.resolve import DEFAULT_STRATEGIES, SsidStrategy, resolve_ssid
from wifiwatch.sources import ConnectivitySource

_logger = logging.getLogger(__name__)

TransitionSink = Callable[[TransitionEvent], None]
SnapshotListener = Callable[[ConnectivitySnapshot], None]


@dataclass
class TrackerState:
    """Mutable state owned by a single tracker instance."""

    last_known: ConnectivitySnapshot | None = None
    pending: asyncio.Task[None] | None = None


class DebouncedStateTracker:
    """Turns a noisy signal stream into one event per genuine transition.

    Parameters
    ----------
    source : ConnectivitySource
        Queried for the authoritative state once a burst has settled.
    on_transition : callable
        Receives each :class:`TransitionEvent`. Must not block; the
        dispatcher hands delivery off to its own task.
    settle_delay : float
        Seconds to wait after the most recent signal.
    loop : asyncio.AbstractEventLoop, optional
        Loop evaluations run on. Defaults to the running loop at the first
        signal; required up front for :meth:`signal_threadsafe`.
    now, sleep :
        Injectable clock and sleep for tests.
    strategies :
        SSID resolution chain, tried in order.
    on_snapshot : callable, optional
        Called with the baseline and with every changed snapshot.
    """

    def __init__(
        self,
        source: ConnectivitySource,
        on_transition: TransitionSink,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
        now: Callable[[], datetime] = local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        strategies: Sequence[SsidStrategy] = DEFAULT_STRATEGIES,
        on_snapshot: SnapshotListener | None = None,
    ) -> None:
        if settle_delay < 0:
            raise ValueError(f"settle_delay must be >= 0, got {settle_delay}")
        self._source = source
        self._on_transition = on_transition
        self._settle_delay = settle_delay
        self._loop = loop
        self._now = now
        self._sleep = sleep
        self._strategies = tuple(strategies)
        self._on_snapshot = on_snapshot
        self._state = TrackerState()
        self._closed = False

    @property
    def last_known(self) -> ConnectivitySnapshot | None:
        return self._state.last_known

    @property
    def pending(self) -> bool:
        """Whether an evaluation is scheduled and has not finished yet."""
        task = self._state.pending
        return task is not None and not task.done()

    @property
    def settle_delay(self) -> float:
        return self._settle_delay

    # ------------------------------------------------------------------
    # Signal intake
    # ------------------------------------------------------------------

    def on_raw_signal(self, signal: RawSignal) -> None:
        """Schedule an evaluation, superseding any that is still pending.

        Must be called on the tracker's loop; see :meth:`signal_threadsafe`.
        """
        if self._closed:
            _logger.debug("Ignoring %s signal: tracker closed", signal)
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        previous = self._state.pending
        if previous is not None and not previous.done():
            previous.cancel()
            _logger.debug("Signal %s supersedes pending evaluation", signal)
        else:
            _logger.debug("Signal %s, evaluating in %.1fs", signal, self._settle_delay)

        self._state.pending = self._loop.create_task(self._settle_then_evaluate())

    def signal_threadsafe(self, signal: RawSignal) -> None:
        """Deliver a signal from a thread other than the tracker's loop."""
        loop = self._loop
        if loop is None:
            raise WifiWatchError("Tracker has no event loop bound; pass loop= to accept threaded signals")
        loop.call_soon_threadsafe(self.on_raw_signal, signal)

    async def _settle_then_evaluate(self) -> None:
        try:
            if self._settle_delay > 0:
                await self._sleep(self._settle_delay)
            snapshot = await asyncio.to_thread(self.sample)
            self.commit(snapshot)
        finally:
            if self._state.pending is asyncio.current_task():
                self._state.pending = None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def sample(self) -> ConnectivitySnapshot:
        """Query the source and build the current snapshot.

        May block on the platform query; scheduled evaluations run it in a
        worker thread.
        """
        try:
            capabilities = self._source.active_capabilities()
        except Exception:
            _logger.warning("Connectivity query failed, treating as disconnected", exc_info=True)
            capabilities = None

        connected = capabilities is not None and capabilities.has_transport(Transport.WIFI)
        if not connected or capabilities is None:
            return ConnectivitySnapshot(connected=False)
        ssid = resolve_ssid(self._source, capabilities, self._strategies)
        return ConnectivitySnapshot(connected=True, ssid=ssid)

    def evaluate(self) -> TransitionEvent | None:
        """Sample, compare with the last confirmed state and emit on change.

        Returns the emitted event, or ``None`` for the baseline and for
        evaluations that found nothing new.
        """
        return self.commit(self.sample())

    def commit(self, snapshot: ConnectivitySnapshot) -> TransitionEvent | None:
        """Compare *snapshot* with the last confirmed state and emit on change."""
        previous = self._state.last_known

        if previous is None:
            self._state.last_known = snapshot
            _logger.info("Baseline connectivity: %s", snapshot)
            self._notify_snapshot(snapshot)
            return None

        if not snapshot.differs_from(previous):
            _logger.debug("No transition (%s)", snapshot)
            return None

        self._state.last_known = snapshot
        event = TransitionEvent.from_snapshot(snapshot, now=self._now)
        _logger.info("Transition %s -> %s", previous, snapshot)
        self._notify_snapshot(snapshot)
        try:
            self._on_transition(event)
        except Exception:
            _logger.exception("Transition handler failed for %s", event.event)
        return event

    def _notify_snapshot(self, snapshot: ConnectivitySnapshot) -> None:
        if self._on_snapshot is None:
            return
        try:
            self._on_snapshot(snapshot)
        except Exception:
            _logger.debug("on_snapshot callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait until no evaluation is pending, following supersedes."""
        while True:
            task = self._state.pending
            if task is None or task.done():
                return
            await asyncio.wait({task})

    def close(self) -> None:
        """Cancel the pending evaluation and ignore further signals."""
        self._closed = True
        task = self._state.pending
        self._state.pending = None
        if task is not None and not task.done():
            task.cancel()
            _logger.debug("Cancelled pending evaluation on close")
