"""Connectivity sources.

A source pushes :class:`~wifiwatch.models.RawSignal` notifications and
answers synchronous capability queries. The tracker only depends on the
:class:`ConnectivitySource` protocol, so tests pass simple fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.models.events import RawSignal

SignalCallback = Callable[[RawSignal], None]


class ConnectivitySource(Protocol):
    """Structural interface for connectivity event sources."""

    def active_capabilities(self) -> NetworkCapabilities | None:
        """Capabilities of the currently active network, ``None`` if there is none.

        May raise :class:`~wifiwatch.exceptions.ConnectivityQueryError`.
        """
        ...

    def legacy_wifi_info(self) -> WifiInfo | None:
        """Device-level Wi-Fi connection info, used as a last SSID fallback."""
        ...

    def subscribe(self, callback: SignalCallback, transports: frozenset[Transport]) -> None:
        """Start delivering signals for changes touching *transports*.

        *callback* may be invoked from any thread.
        """
        ...

    def unsubscribe(self) -> None:
        ...


__all__ = ["ConnectivitySource", "SignalCallback"]
