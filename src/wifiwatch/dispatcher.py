"""Fire-and-forget webhook delivery of transition events."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from wifiwatch._constants import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SHUTDOWN_GRACE,
    JSON_CONTENT_TYPE,
    USER_AGENT,
)
from wifiwatch._redact import redact_url
from wifiwatch.config import WatchConfig
from wifiwatch.exceptions import WebhookDeliveryError
from wifiwatch.models.events import TransitionEvent

_logger = logging.getLogger(__name__)


def encode_payload(event: TransitionEvent) -> bytes:
    """Compact UTF-8 JSON body for *event*."""
    return json.dumps(event.to_payload(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class WebhookDispatcher:
    """Posts each transition to a webhook exactly once, without blocking the caller.

    Every :meth:`dispatch` runs in its own task. A failing delivery is
    logged and dropped; it never affects sibling deliveries or the caller.

    Usage::

        async with WebhookDispatcher(url) as dispatcher:
            dispatcher.dispatch(event)
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = USER_AGENT,
        dry_run: bool = False,
    ) -> None:
        self._url = url
        self._redacted_url = redact_url(url)
        self._external_session = session is not None
        self._http_session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {
            "content-type": JSON_CONTENT_TYPE,
            "user-agent": user_agent,
        }
        self._dry_run = dry_run
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: WatchConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> WebhookDispatcher:
        return cls(
            config.webhook_url,
            session=session,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            dry_run=config.dry_run,
        )

    async def __aenter__(self) -> WebhookDispatcher:
        self._require_session()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def dispatch(self, event: TransitionEvent) -> None:
        """Schedule delivery of *event* and return immediately."""
        if self._closed:
            _logger.warning("Dispatcher closed, dropping %s event", event.event)
            return
        task = asyncio.get_running_loop().create_task(
            self._deliver(event),
            name=f"wifiwatch-dispatch-{event.event}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, event: TransitionEvent) -> None:
        try:
            await self.send(event)
        except asyncio.CancelledError:
            _logger.debug("Delivery of %s event abandoned", event.event)
            raise
        except Exception:
            _logger.exception("Unexpected error delivering %s event", event.event)

    async def send(self, event: TransitionEvent) -> bool:
        """Make the single delivery attempt for *event*.

        Returns ``True`` on a 2xx response. Failures are logged, never raised.
        """
        body = encode_payload(event)
        if self._dry_run:
            _logger.info("Dry run, not posting to %s: %s", self._redacted_url, body.decode("utf-8"))
            return True

        try:
            status = await self._post(body)
        except WebhookDeliveryError as exc:
            _logger.warning("Webhook delivery failed (%s): %s", event.event, exc)
            return False

        _logger.info("Webhook delivered (%s): HTTP %d", event.event, status)
        return True

    async def _post(self, body: bytes) -> int:
        session = self._require_session()
        _logger.debug("POST %s", self._redacted_url)
        try:
            async with session.post(self._url, data=body, headers=self._headers, timeout=self._timeout) as resp:
                status = resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise WebhookDeliveryError(
                f"Request to {self._redacted_url} failed: {exc!r}",
                url=self._redacted_url,
            ) from exc

        if not 200 <= status < 300:
            raise WebhookDeliveryError(
                f"HTTP {status} from {self._redacted_url}",
                status_code=status,
                url=self._redacted_url,
            )
        return status

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def aclose(self, grace: float = DEFAULT_SHUTDOWN_GRACE) -> None:
        """Stop accepting events, let in-flight deliveries run for *grace* seconds, then cancel them."""
        self._closed = True
        tasks = set(self._tasks)
        if tasks:
            _done, pending = await asyncio.wait(tasks, timeout=grace)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                _logger.warning("Abandoned %d in-flight webhook deliveries", len(pending))

        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None
