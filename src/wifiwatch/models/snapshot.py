"""Authoritative connectivity state sampled after the settle delay."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class ConnectivitySnapshot(BaseModel):
    """Whether Wi-Fi is active and, if so, which network.

    ``ssid`` is always ``None`` for a disconnected snapshot. When connected
    it may be the ``"<unknown ssid>"`` placeholder.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    connected: bool
    ssid: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_ssid_when_disconnected(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("connected"):
            merged = dict(values)
            merged["ssid"] = None
            return merged
        return values

    def differs_from(self, other: ConnectivitySnapshot) -> bool:
        """Genuine-transition predicate.

        A change of ``connected`` always counts; an SSID change only counts
        while connected.
        """
        if self.connected != other.connected:
            return True
        return self.connected and self.ssid != other.ssid

    def __str__(self) -> str:
        if not self.connected:
            return "disconnected"
        return f"connected ssid={self.ssid}"
