"""
Application service: derives chart series from the aggregator's history log.

Stateless; the input sequence is read once and never mutated. Bucketed modes
keep the *last* entry seen per bucket (no averaging, no closing price per
bucket), in the order buckets were first encountered.
"""

import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from src.domain.entities.chart_series import RangeMode, ResampledSeries
from src.domain.entities.price_state import HistorySnapshot

_WINDOWS: dict[RangeMode, timedelta] = {
    RangeMode.LAST_HOUR: timedelta(hours=1),
    RangeMode.LAST_DAY: timedelta(hours=24),
    RangeMode.LAST_WEEK: timedelta(days=7),
    RangeMode.LAST_30_DAYS: timedelta(days=30),
    RangeMode.LAST_MONTH: timedelta(days=30),
}


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def identity_label(value: str) -> str:
    return value


def format_short_date(value: str) -> str:
    """'2025-10-05T14:03:00+00:00' -> 'Oct 5' (UTC)."""
    moment = _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    return f"{moment:%b} {moment.day}"


def week_bucket(moment: datetime) -> str:
    """Approximate ISO week key, e.g. '2025-W4'.

    week = ceil((day_of_year + jan1_weekday + 1) / 7), with a zero-based
    day_of_year and Sunday = 0. Not a strict ISO-8601 week number; week 53 and
    year-boundary weeks differ from the standard.
    """
    moment = _as_utc(moment)
    first_jan = datetime(moment.year, 1, 1, tzinfo=timezone.utc)
    day_of_year = math.floor((moment - first_jan) / timedelta(days=1))
    first_jan_weekday = (first_jan.weekday() + 1) % 7
    week = math.ceil((day_of_year + first_jan_weekday + 1) / 7)
    return f"{moment.year}-W{week}"


def month_bucket(moment: datetime) -> str:
    """Calendar month key in UTC, month not zero padded, e.g. '2025-3'."""
    moment = _as_utc(moment)
    return f"{moment.year}-{moment.month}"


_AXES: dict[RangeMode, tuple[str, Callable[[str], str]]] = {
    RangeMode.LAST_HOUR: ("time", identity_label),
    RangeMode.LAST_DAY: ("time", identity_label),
    RangeMode.LAST_WEEK: ("date", format_short_date),
    RangeMode.LAST_30_DAYS: ("date", format_short_date),
    RangeMode.LAST_MONTH: ("date", format_short_date),
    RangeMode.WEEKLY: ("bucket", identity_label),
    RangeMode.MONTHLY: ("bucket", identity_label),
    RangeMode.ALL: ("date", format_short_date),
}

_BUCKETS: dict[RangeMode, Callable[[datetime], str]] = {
    RangeMode.WEEKLY: week_bucket,
    RangeMode.MONTHLY: month_bucket,
}


def _last_per_bucket(
    entries: tuple[HistorySnapshot, ...], key_fn: Callable[[datetime], str]
) -> tuple[HistorySnapshot, ...]:
    buckets: dict[str, HistorySnapshot] = {}
    for entry in entries:
        key = key_fn(entry.timestamp)
        buckets[key] = replace(entry, bucket=key)
    return tuple(buckets.values())


def resample(
    history: Iterable[HistorySnapshot],
    mode: "RangeMode | str",
    now: Optional[datetime] = None,
) -> ResampledSeries:
    """Derive the chart series for *mode* from *history*.

    Args:
        history: HistorySnapshot entries in processing order (read-only).
        mode:    A RangeMode or its string value ('1h', 'week', ...).
        now:     Reference time for the windowed modes; defaults to the current UTC time.

    Returns:
        ResampledSeries with the selected points, the x-axis attribute name and
        the axis label formatter. ``points`` is empty when *history* is.

    Raises:
        ValueError: if *mode* is not a known range mode.
    """
    mode = RangeMode.parse(mode)
    x_key, format_x = _AXES[mode]
    entries = tuple(history)

    if not entries:
        points: tuple[HistorySnapshot, ...] = ()
    elif mode in _WINDOWS:
        cutoff = _as_utc(now or datetime.now(timezone.utc)) - _WINDOWS[mode]
        points = tuple(entry for entry in entries if entry.timestamp >= cutoff)
    elif mode in _BUCKETS:
        points = _last_per_bucket(entries, _BUCKETS[mode])
    else:
        points = entries

    return ResampledSeries(points=points, x_key=x_key, format_x=format_x)
