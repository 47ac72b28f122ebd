"""Cálculo de inicios de bucket en hora local (epoch segundos)."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict

from .domain import SECONDS_PER_HOUR, Granularity


def _local(ts: int) -> datetime:
    return datetime.fromtimestamp(int(ts))


def _epoch(dt: datetime) -> int:
    return int(dt.timestamp())


def hour_start(ts: int) -> int:
    return _epoch(_local(ts).replace(minute=0, second=0, microsecond=0))


def next_hour_start(ts: int) -> int:
    # Aritmética en epoch: en los cambios de horario la hora local salta o se repite.
    return hour_start(hour_start(ts) + SECONDS_PER_HOUR)


def previous_hour_start(ts: int) -> int:
    return hour_start(hour_start(ts) - 1)


def day_start(ts: int) -> int:
    return _epoch(_local(ts).replace(hour=0, minute=0, second=0, microsecond=0))


def week_start(ts: int) -> int:
    """Monday 00:00 local of the week containing ts."""
    day = _local(day_start(ts))
    return _epoch(day - timedelta(days=day.weekday()))


def month_start(ts: int) -> int:
    return _epoch(_local(ts).replace(day=1, hour=0, minute=0, second=0, microsecond=0))


def year_start(ts: int) -> int:
    return _epoch(_local(ts).replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0))


BUCKET_START: Dict[Granularity, Callable[[int], int]] = {
    Granularity.HOUR: hour_start,
    Granularity.DAY: day_start,
    Granularity.WEEK: week_start,
    Granularity.MONTH: month_start,
    Granularity.YEAR: year_start,
}


def local_hour(ts: int) -> int:
    return _local(ts).hour
