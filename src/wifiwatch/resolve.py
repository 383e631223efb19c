"""SSID resolution across platform fallback layers.

Each strategy returns an SSID or ``None`` ("unresolved"). Strategies are
tried in order and the first usable answer wins. A placeholder answer
(``"<unknown ssid>"``) counts as unresolved; when every strategy comes
back empty the placeholder itself is reported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from wifiwatch._constants import UNKNOWN_SSID
from wifiwatch.models.capabilities import NetworkCapabilities
from wifiwatch.sources import ConnectivitySource

_logger = logging.getLogger(__name__)

SsidStrategy = Callable[[ConnectivitySource, NetworkCapabilities], str | None]


def is_placeholder(ssid: str | None) -> bool:
    if ssid is None:
        return True
    stripped = ssid.strip()
    return not stripped or stripped == UNKNOWN_SSID


def from_capabilities(_source: ConnectivitySource, capabilities: NetworkCapabilities) -> str | None:
    """SSID embedded in the transport metadata of the sampled capabilities."""
    info = capabilities.wifi_info
    return info.ssid if info is not None else None


def from_capabilities_reread(source: ConnectivitySource, _capabilities: NetworkCapabilities) -> str | None:
    """Read the active capabilities again; the first read can carry a transient null."""
    fresh = source.active_capabilities()
    if fresh is None or fresh.wifi_info is None:
        return None
    return fresh.wifi_info.ssid


def from_legacy_wifi_info(source: ConnectivitySource, _capabilities: NetworkCapabilities) -> str | None:
    """Device-level Wi-Fi connection info."""
    info = source.legacy_wifi_info()
    return info.ssid if info is not None else None


DEFAULT_STRATEGIES: tuple[SsidStrategy, ...] = (
    from_capabilities,
    from_capabilities_reread,
    from_legacy_wifi_info,
)


def resolve_ssid(
    source: ConnectivitySource,
    capabilities: NetworkCapabilities,
    strategies: Sequence[SsidStrategy] = DEFAULT_STRATEGIES,
) -> str:
    """Return the first non-placeholder SSID, or ``UNKNOWN_SSID``."""
    for strategy in strategies:
        try:
            ssid = strategy(source, capabilities)
        except Exception:
            _logger.debug("SSID strategy %s failed", getattr(strategy, "__name__", strategy), exc_info=True)
            continue
        if ssid is not None and not is_placeholder(ssid):
            return ssid

    _logger.warning("SSID could not be resolved (still %s); check location permissions", UNKNOWN_SSID)
    return UNKNOWN_SSID
