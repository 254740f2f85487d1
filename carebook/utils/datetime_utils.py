"""Time helpers. Stored timestamps are naive UTC."""

from datetime import datetime, time, timezone

import pytz


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_hhmm(value: str) -> time:
    """'22:30' -> time(22, 30)"""
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def to_local(moment: datetime, tz_name: str) -> datetime:
    """Convert a naive UTC (or aware) datetime to the given zone"""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(pytz.timezone(tz_name))


def to_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(pytz.utc).replace(tzinfo=None)
