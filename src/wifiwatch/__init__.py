"""wifiwatch - report Wi-Fi connectivity transitions to a webhook."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("wifiwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from wifiwatch.config import WatchConfig
from wifiwatch.dispatcher import WebhookDispatcher
from wifiwatch.exceptions import (
    ConnectivityQueryError,
    WebhookDeliveryError,
    WifiWatchConfigError,
    WifiWatchError,
)
from wifiwatch.models import (
    ConnectivitySnapshot,
    NetworkCapabilities,
    RawSignal,
    Transport,
    TransitionEvent,
    TransitionKind,
    WifiInfo,
)
from wifiwatch.monitor import WifiMonitor
from wifiwatch.sources import ConnectivitySource
from wifiwatch.sources.polling import PollingSource
from wifiwatch.tracker import DebouncedStateTracker, TrackerState

__all__ = [
    "__version__",
    "ConnectivityQueryError",
    "ConnectivitySnapshot",
    "ConnectivitySource",
    "DebouncedStateTracker",
    "NetworkCapabilities",
    "PollingSource",
    "RawSignal",
    "TrackerState",
    "Transport",
    "TransitionEvent",
    "TransitionKind",
    "WatchConfig",
    "WebhookDeliveryError",
    "WebhookDispatcher",
    "WifiInfo",
    "WifiMonitor",
    "WifiWatchConfigError",
    "WifiWatchError",
]
