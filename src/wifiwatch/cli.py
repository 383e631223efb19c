"""Command-line entry point: watch NetworkManager and post transitions."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any

from wifiwatch.config import WatchConfig, parse_transports
from wifiwatch.dispatcher import WebhookDispatcher
from wifiwatch.exceptions import WifiWatchConfigError
from wifiwatch.models.events import TransitionEvent, TransitionKind
from wifiwatch.monitor import WifiMonitor
from wifiwatch.sources.nmcli import nmcli_source


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wifiwatch",
        description="Post a webhook whenever Wi-Fi connects, disconnects or changes SSID.",
    )
    parser.add_argument(
        "--webhook-url",
        help="Webhook endpoint (default: $WIFIWATCH_WEBHOOK_URL).",
    )
    parser.add_argument(
        "--settle-delay",
        type=float,
        help="Seconds to wait for signals to settle before sampling (default 3).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        help="Seconds between nmcli probes (default 2).",
    )
    parser.add_argument(
        "--transports",
        help="Comma-separated transports that trigger re-evaluation (default wifi,cellular).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Webhook request timeout in seconds (default 10).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log payloads instead of posting them.",
    )
    parser.add_argument(
        "--test-event",
        choices=["connected", "disconnected"],
        help="Send a single test event and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> WatchConfig:
    overrides: dict[str, Any] = {}
    if args.webhook_url is not None:
        overrides["webhook_url"] = args.webhook_url
    if args.settle_delay is not None:
        overrides["settle_delay"] = args.settle_delay
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval
    if args.transports is not None:
        overrides["transports"] = parse_transports(args.transports)
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    if args.dry_run:
        overrides["dry_run"] = True
    return WatchConfig.from_env(**overrides)


async def _send_test_event(config: WatchConfig, kind: str) -> int:
    if kind == "connected":
        event = TransitionEvent(event=TransitionKind.CONNECTED, ssid="wifiwatch-test")
    else:
        event = TransitionEvent(event=TransitionKind.DISCONNECTED)
    async with WebhookDispatcher.from_config(config) as dispatcher:
        ok = await dispatcher.send(event)
    return 0 if ok else 1


async def _watch(config: WatchConfig) -> int:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    source = nmcli_source(interval=config.poll_interval)
    async with WifiMonitor(config, source):
        await stop.wait()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except WifiWatchConfigError as exc:
        print(f"wifiwatch: {exc}", file=sys.stderr)
        return 2

    if args.test_event:
        return asyncio.run(_send_test_event(config, args.test_event))
    return asyncio.run(_watch(config))


if __name__ == "__main__":
    raise SystemExit(main())
