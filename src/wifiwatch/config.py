"""Monitor configuration for wifiwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlsplit

from wifiwatch._constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_SHUTDOWN_GRACE,
    USER_AGENT,
)
from wifiwatch.exceptions import WifiWatchConfigError
from wifiwatch.models.capabilities import Transport

DEFAULT_TRANSPORTS: frozenset[Transport] = frozenset({Transport.WIFI, Transport.CELLULAR})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_transports(value: str | Iterable[str | Transport]) -> frozenset[Transport]:
    """Parse ``"wifi,cellular"`` (or an iterable of names) into transports."""
    items = value.split(",") if isinstance(value, str) else list(value)
    result: set[Transport] = set()
    for item in items:
        name = str(item).strip().lower()
        if not name:
            continue
        try:
            result.add(Transport(name))
        except ValueError as exc:
            raise WifiWatchConfigError(f"Unknown transport: {item!r}") from exc
    if not result:
        raise WifiWatchConfigError("At least one transport must be monitored")
    return frozenset(result)


@dataclasses.dataclass(frozen=True)
class WatchConfig:
    """Monitor configuration.

    Parameters
    ----------
    webhook_url : str
        Endpoint receiving one POST per genuine transition.
    settle_delay : float
        Seconds to wait after the most recent raw signal before sampling
        the authoritative state. ``0`` evaluates on the next loop iteration.
    transports : frozenset[Transport]
        Transports whose changes trigger a re-evaluation. Wi-Fi loss is
        often only visible as a cellular change, hence the default.
    request_timeout : float
        Total timeout of a single webhook POST, in seconds.
    shutdown_grace : float
        Seconds in-flight deliveries may keep running after ``stop()``.
    poll_interval : float
        Probe interval for polling connectivity sources.
    dry_run : bool
        Log payloads instead of posting them.
    user_agent : str
        ``User-Agent`` header sent with every webhook request.
    """

    webhook_url: str
    settle_delay: float = DEFAULT_SETTLE_DELAY
    transports: frozenset[Transport] = DEFAULT_TRANSPORTS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    dry_run: bool = False
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        url = (self.webhook_url or "").strip()
        if not url:
            raise WifiWatchConfigError("webhook_url is required")
        parts = urlsplit(url)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise WifiWatchConfigError(f"webhook_url must be an http(s) URL, got {url!r}")
        object.__setattr__(self, "webhook_url", url)

        if not isinstance(self.transports, frozenset) or not all(isinstance(t, Transport) for t in self.transports):
            object.__setattr__(self, "transports", parse_transports(self.transports))
        elif not self.transports:
            raise WifiWatchConfigError("At least one transport must be monitored")

        if self.settle_delay < 0:
            raise WifiWatchConfigError(f"settle_delay must be >= 0, got {self.settle_delay}")
        if self.request_timeout <= 0:
            raise WifiWatchConfigError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.shutdown_grace < 0:
            raise WifiWatchConfigError(f"shutdown_grace must be >= 0, got {self.shutdown_grace}")
        if self.poll_interval <= 0:
            raise WifiWatchConfigError(f"poll_interval must be > 0, got {self.poll_interval}")

    @classmethod
    def from_env(cls, **overrides: Any) -> WatchConfig:
        """Create configuration from ``WIFIWATCH_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("WIFIWATCH_WEBHOOK_URL")
        if url is not None:
            config_kwargs["webhook_url"] = url

        _ENV_FLOAT_MAP = {
            "WIFIWATCH_SETTLE_DELAY": "settle_delay",
            "WIFIWATCH_REQUEST_TIMEOUT": "request_timeout",
            "WIFIWATCH_SHUTDOWN_GRACE": "shutdown_grace",
            "WIFIWATCH_POLL_INTERVAL": "poll_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise WifiWatchConfigError(f"{env_key} must be a number, got {val!r}") from exc

        transports_env = env.get("WIFIWATCH_TRANSPORTS")
        if transports_env is not None and "transports" not in overrides:
            config_kwargs["transports"] = parse_transports(transports_env)

        if "dry_run" not in overrides:
            config_kwargs["dry_run"] = _env_bool(env.get("WIFIWATCH_DRY_RUN"), False)

        config_kwargs.update(overrides)
        if "webhook_url" not in config_kwargs:
            raise WifiWatchConfigError("WIFIWATCH_WEBHOOK_URL is not set")

        return cls(**config_kwargs)
