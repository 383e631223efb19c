from __future__ import annotations

import logging

import pytest

from wifiwatch._constants import UNKNOWN_SSID
from wifiwatch.models.capabilities import NetworkCapabilities, Transport, WifiInfo
from wifiwatch.resolve import is_placeholder, resolve_ssid


def _wifi(ssid: str | None) -> NetworkCapabilities:
    return NetworkCapabilities(transports=frozenset({Transport.WIFI}), wifi_info=WifiInfo(ssid=ssid))


class _SequenceSource:
    """Returns queued capability reads in order, then repeats the last one."""

    def __init__(self, reads: list[NetworkCapabilities | None], legacy: WifiInfo | None = None) -> None:
        self._reads = list(reads)
        self._legacy = legacy
        self.legacy_calls = 0

    def active_capabilities(self) -> NetworkCapabilities | None:
        if len(self._reads) > 1:
            return self._reads.pop(0)
        return self._reads[0] if self._reads else None

    def legacy_wifi_info(self) -> WifiInfo | None:
        self.legacy_calls += 1
        return self._legacy

    def subscribe(self, callback, transports) -> None:  # pragma: no cover
        pass

    def unsubscribe(self) -> None:  # pragma: no cover
        pass


@pytest.mark.parametrize("value", [None, "", "   ", UNKNOWN_SSID])
def test_is_placeholder(value: str | None) -> None:
    assert is_placeholder(value)


def test_is_placeholder_accepts_real_name() -> None:
    assert not is_placeholder("Home")


def test_capability_metadata_wins() -> None:
    source = _SequenceSource([], legacy=WifiInfo(ssid="Legacy"))
    assert resolve_ssid(source, _wifi("Home")) == "Home"
    assert source.legacy_calls == 0


def test_reread_recovers_transient_null() -> None:
    source = _SequenceSource([_wifi("Home")])
    assert resolve_ssid(source, _wifi(None)) == "Home"


def test_legacy_info_is_last_resort() -> None:
    source = _SequenceSource([_wifi(UNKNOWN_SSID)], legacy=WifiInfo(ssid='"Office"'))
    assert resolve_ssid(source, _wifi(UNKNOWN_SSID)) == "Office"
    assert source.legacy_calls == 1


def test_all_placeholders_yield_unknown_and_warn(caplog: pytest.LogCaptureFixture) -> None:
    source = _SequenceSource([_wifi(UNKNOWN_SSID)], legacy=WifiInfo(ssid=UNKNOWN_SSID))
    with caplog.at_level(logging.WARNING, logger="wifiwatch.resolve"):
        assert resolve_ssid(source, _wifi(None)) == UNKNOWN_SSID
    assert "could not be resolved" in caplog.text


def test_failing_strategy_is_skipped() -> None:
    def broken(_source, _caps):
        raise RuntimeError("permission denied")

    def fallback(_source, _caps):
        return "Backup"

    source = _SequenceSource([])
    assert resolve_ssid(source, _wifi(None), strategies=[broken, fallback]) == "Backup"


def test_surrounding_whitespace_is_part_of_the_ssid() -> None:
    source = _SequenceSource([])
    assert resolve_ssid(source, _wifi(" Home ")) == " Home "
