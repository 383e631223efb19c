"""Custom exception hierarchy for wifiwatch."""

from __future__ import annotations


class WifiWatchError(Exception):
    """Base exception for all wifiwatch errors."""


class WifiWatchConfigError(WifiWatchError):
    """Invalid or missing configuration."""


class ConnectivityQueryError(WifiWatchError):
    """The platform could not report the active network's capabilities.

    The tracker treats this as "not connected"; it is never fatal.
    """


class WebhookDeliveryError(WifiWatchError):
    """Webhook POST failed (network error, timeout or non-2xx status).

    Raised inside the dispatcher only. Delivery is best-effort, so the
    dispatcher logs it and drops the event.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
