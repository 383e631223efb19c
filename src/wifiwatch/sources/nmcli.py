"""NetworkManager (``nmcli``) probes for Linux hosts.

``nmcli`` terse output (``-t``) separates fields with ``:`` and escapes
literal colons and backslashes inside values with a backslash.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from wifiwatch._constants import DEFAULT_POLL_INTERVAL
from wifiwatch.exceptions import ConnectivityQueryError
from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.sources.polling import PollingSource

_logger = logging.getLogger(__name__)

DEVICE_STATUS_CMD = ["nmcli", "-t", "-f", "DEVICE,TYPE,STATE,CONNECTION", "device", "status"]
WIFI_LIST_CMD = ["nmcli", "-t", "-f", "ACTIVE,SSID,BSSID,DEVICE", "device", "wifi", "list", "--rescan", "no"]
LEGACY_SSID_CMD = ["iwgetid", "-r"]

_TYPE_MAP: dict[str, Transport] = {
    "wifi": Transport.WIFI,
    "ethernet": Transport.ETHERNET,
    "gsm": Transport.CELLULAR,
    "cdma": Transport.CELLULAR,
    "modem": Transport.CELLULAR,
    "tun": Transport.VPN,
    "vpn": Transport.VPN,
    "wireguard": Transport.VPN,
}
# Device types that never carry user traffic.
_IGNORED_TYPES = frozenset({"loopback", "wifi-p2p"})

CommandRunner = Callable[[list[str]], str]


def run_command(cmd: list[str], timeout: float = 5.0) -> str:
    """Run *cmd* and return stdout; raise ``ConnectivityQueryError`` on any failure."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise ConnectivityQueryError(f"{cmd[0]} failed: {exc}") from exc
    if result.returncode != 0:
        raise ConnectivityQueryError(f"{cmd[0]} exited with {result.returncode}: {result.stderr.strip()[:200]}")
    return result.stdout


def split_terse(line: str) -> list[str]:
    """Split one line of ``nmcli -t`` output into unescaped fields."""
    fields: list[str] = []
    current: list[str] = []
    escaped = False
    for ch in line:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


@dataclass(frozen=True)
class DeviceStatus:
    device: str
    type: str
    state: str
    connection: str

    @property
    def is_connected(self) -> bool:
        # "connected (externally)" and "connected (site only)" also count.
        return self.state.startswith("connected")


def parse_device_status(text: str) -> list[DeviceStatus]:
    devices: list[DeviceStatus] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = split_terse(line)
        if len(fields) < 4:
            _logger.debug("Skipping malformed nmcli device line: %r", line)
            continue
        devices.append(DeviceStatus(device=fields[0], type=fields[1], state=fields[2], connection=fields[3]))
    return devices


def parse_active_wifi(text: str) -> WifiInfo | None:
    """Return the in-use access point from ``nmcli device wifi list`` output."""
    for line in text.splitlines():
        fields = split_terse(line)
        if len(fields) < 4 or fields[0] != "yes":
            continue
        return WifiInfo(ssid=fields[1] or None, bssid=fields[2] or None, interface=fields[3] or None)
    return None


def build_capabilities(devices: list[DeviceStatus], wifi: WifiInfo | None) -> NetworkCapabilities | None:
    """Combine connected devices into one capability set; ``None`` when nothing is connected."""
    transports: set[Transport] = set()
    for device in devices:
        if device.type in _IGNORED_TYPES or not device.is_connected:
            continue
        transports.add(_TYPE_MAP.get(device.type, Transport.OTHER))
    if not transports:
        return None
    wifi_info = wifi if Transport.WIFI in transports else None
    return NetworkCapabilities(transports=frozenset(transports), wifi_info=wifi_info)


def probe_capabilities(runner: CommandRunner = run_command) -> NetworkCapabilities | None:
    devices = parse_device_status(runner(DEVICE_STATUS_CMD))
    wifi: WifiInfo | None = None
    if any(d.type == "wifi" and d.is_connected for d in devices):
        try:
            wifi = parse_active_wifi(runner(WIFI_LIST_CMD))
        except ConnectivityQueryError:
            _logger.debug("nmcli wifi list failed", exc_info=True)
    return build_capabilities(devices, wifi)


def probe_legacy_wifi(runner: CommandRunner = run_command) -> WifiInfo | None:
    try:
        ssid = runner(LEGACY_SSID_CMD).rstrip("\r\n")
    except ConnectivityQueryError:
        _logger.debug("iwgetid unavailable", exc_info=True)
        return None
    return WifiInfo(ssid=ssid or None)


def nmcli_source(interval: float = DEFAULT_POLL_INTERVAL) -> PollingSource:
    """Polling source backed by ``nmcli`` with ``iwgetid`` as the legacy fallback."""
    return PollingSource(probe_capabilities, interval=interval, legacy_probe=probe_legacy_wifi)
