"""Inbound raw signals and outbound transition events."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wifiwatch.models.snapshot import ConnectivitySnapshot


def local_now() -> datetime:
    """Current local time with UTC offset attached."""
    return datetime.now().astimezone()


class RawSignal(StrEnum):
    """Notification kinds pushed by a connectivity source.

    A signal only means "re-evaluate now"; it carries no state.
    """

    APPEARED = "appeared"
    LOST = "lost"
    CAPABILITIES_CHANGED = "capabilities_changed"


class TransitionKind(StrEnum):
    CONNECTED = "wifi_connected"
    DISCONNECTED = "wifi_disconnected"


class TransitionEvent(BaseModel):
    """A genuine connectivity change, built once and handed to the dispatcher."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    event: TransitionKind
    ssid: str | None = None
    timestamp: datetime = Field(default_factory=local_now)

    @model_validator(mode="after")
    def _ssid_only_when_connected(self) -> TransitionEvent:
        if self.event == TransitionKind.DISCONNECTED and self.ssid is not None:
            raise ValueError("ssid must be omitted for wifi_disconnected")
        return self

    @field_validator("timestamp")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.astimezone()
        return value

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ConnectivitySnapshot,
        *,
        now: Callable[[], datetime] = local_now,
    ) -> TransitionEvent:
        if snapshot.connected:
            return cls(event=TransitionKind.CONNECTED, ssid=snapshot.ssid, timestamp=now())
        return cls(event=TransitionKind.DISCONNECTED, timestamp=now())

    def to_payload(self) -> dict[str, Any]:
        """Wire body for the webhook; ``ssid`` is only present for connects."""
        payload: dict[str, Any] = {"event": self.event.value}
        if self.event == TransitionKind.CONNECTED:
            payload["ssid"] = self.ssid
        payload["timestamp"] = self.timestamp.isoformat()
        return payload
