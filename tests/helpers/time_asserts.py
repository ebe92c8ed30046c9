"""Time related assertion helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def assert_strict_utc(dt: datetime | None) -> None:
    """Fails if dt is not tz-aware UTC.

    This catches values that came back naive or in local time, even when the
    local offset happens to be 0.
    """
    assert dt is not None, "timestamp must be set"
    assert dt.tzinfo is not None, "timestamp must be tz-aware"
    assert dt.utcoffset() == timedelta(0), (
        f"expected UTC offset 0, got {dt.utcoffset()}"
    )
    # UTCDateTime normalizes every value to the timezone.utc singleton
    assert dt.tzinfo is timezone.utc, "tzinfo should be datetime.timezone.utc"


def assert_close(actual: datetime, expected: datetime, tolerance_ms: int = 1) -> None:
    """Fails if two datetimes differ by more than ``tolerance_ms``.

    Backends keep microseconds, but comparing with a small tolerance keeps the
    tests independent of storage precision.
    """
    delta = abs(actual - expected)
    assert delta <= timedelta(milliseconds=tolerance_ms), (
        f"{actual.isoformat()} != {expected.isoformat()} (off by {delta})"
    )
