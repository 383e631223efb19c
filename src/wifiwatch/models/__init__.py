"""Data models for wifiwatch."""

from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.models.events import RawSignal, TransitionEvent, TransitionKind, local_now
from wifiwatch.models.snapshot import ConnectivitySnapshot

__all__ = [
    "ConnectivitySnapshot",
    "NetworkCapabilities",
    "RawSignal",
    "Transport",
    "TransitionEvent",
    "TransitionKind",
    "WifiInfo",
    "local_now",
]
