"""Conversions between the business timezone and stored naive-UTC timestamps."""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo


def to_local(moment: datetime, tz: ZoneInfo) -> datetime:
    """Local time of ``moment``. Naive values are read as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz)


def to_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """Naive UTC bounds ``[start, end)`` of a calendar day in ``tz``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return to_naive_utc(start), to_naive_utc(end)
