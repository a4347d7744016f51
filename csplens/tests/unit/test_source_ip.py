from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from csplens.services import ingestion
from csplens.services.ingestion import ObservedAtClock, resolve_source_ip


def test_trusted_proxy_header_wins() -> None:
    headers = {"CF-Connecting-IP": "203.0.113.7", "X-Forwarded-For": "198.51.100.1"}

    assert resolve_source_ip(headers, "10.0.0.1") == "203.0.113.7"


def test_forwarded_for_uses_left_most_hop() -> None:
    headers = {"x-forwarded-for": "198.51.100.1, 10.0.0.2, 10.0.0.3"}

    assert resolve_source_ip(headers, "10.0.0.1") == "198.51.100.1"


def test_blank_headers_fall_through_to_peer_address() -> None:
    headers = {"cf-connecting-ip": "  ", "x-forwarded-for": ""}

    assert resolve_source_ip(headers, "10.0.0.1") == "10.0.0.1"


def test_missing_everything_yields_none() -> None:
    assert resolve_source_ip({}, None) is None


def test_observed_at_clock_never_goes_backwards(monkeypatch: pytest.MonkeyPatch) -> None:
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    readings = iter([start, start - timedelta(seconds=5), start + timedelta(seconds=1)])

    class _FakeDatetime(datetime):
        @classmethod
        def now(cls, tz=None):  # type: ignore[override]
            return next(readings)

    monkeypatch.setattr(ingestion, "datetime", _FakeDatetime)
    clock = ObservedAtClock()

    assert clock.now() == start
    assert clock.now() == start
    assert clock.now() == start + timedelta(seconds=1)
