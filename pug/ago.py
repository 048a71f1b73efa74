"""Human-friendly rendering of how long ago something happened."""

from __future__ import annotations

from datetime import datetime, timedelta

_MICROSECOND = timedelta(microseconds=1)
_TEN_SECONDS_US = 10_000_000


def _round_to_ten_seconds(diff: timedelta) -> timedelta:
    """Round to the nearest ten seconds, halfway values away from zero."""
    micros = diff // _MICROSECOND
    remainder = abs(micros) % _TEN_SECONDS_US
    magnitude = abs(micros) - remainder
    if remainder * 2 >= _TEN_SECONDS_US:
        magnitude += _TEN_SECONDS_US
    return timedelta(microseconds=magnitude if micros >= 0 else -magnitude)


def ago(now: datetime, then: datetime) -> str:
    """Describe the time elapsed from then until now, e.g. "5s ago".

    Between ten seconds and a minute the count is rounded to ten-second
    blocks, so that rows in a table do not change on every render.
    """
    diff = now - then
    if diff < timedelta(seconds=10):
        n, suffix = int(diff.total_seconds()), "s"
    elif diff < timedelta(minutes=1):
        n, suffix = int(_round_to_ten_seconds(diff).total_seconds()), "s"
    elif diff < timedelta(hours=1):
        n, suffix = int(diff.total_seconds() / 60), "m"
    else:
        n, suffix = int(diff.total_seconds() / 3600), "h"
    return f"{n}{suffix} ago"