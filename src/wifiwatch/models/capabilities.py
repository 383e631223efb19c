"""Capability set reported by a connectivity source for the active network."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Transport(StrEnum):
    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    VPN = "vpn"
    OTHER = "other"


def _unquote(value: Any) -> Any:
    # Some platforms report the SSID wrapped in double quotes.
    if isinstance(value, str):
        return value.replace('"', "")
    return value


class WifiInfo(BaseModel):
    """Transport-specific metadata for a Wi-Fi link."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    ssid: str | None = None
    bssid: str | None = None
    interface: str | None = None

    @field_validator("ssid", mode="before")
    @classmethod
    def _strip_quotes(cls, value: Any) -> Any:
        return _unquote(value)


class NetworkCapabilities(BaseModel):
    """Transports present on the active network plus optional Wi-Fi metadata."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    transports: frozenset[Transport] = Field(default_factory=frozenset)
    wifi_info: WifiInfo | None = None

    def has_transport(self, transport: Transport) -> bool:
        return transport in self.transports

    def touches(self, transports: frozenset[Transport]) -> bool:
        """Whether any of *transports* is present on this network."""
        return bool(self.transports & transports)
