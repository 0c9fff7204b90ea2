"""
Reporting period helpers for agent performance buckets
"""
import calendar
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

PERIOD_TYPES = ("daily", "weekly", "monthly", "quarterly")
TREND_PERIOD_TYPES = ("weekly", "monthly", "quarterly")


@dataclass(frozen=True)
class PeriodInfo:
    period_type: str
    key: str
    start: datetime
    end: datetime


def _sunday_weekday(value: datetime) -> int:
    """Day of week with Sunday as 0"""
    return (value.weekday() + 1) % 7


def calculate_period_info(value: datetime, period_type: str) -> PeriodInfo:
    """
    Map a timestamp to the bucket of the given period type.

    Keys are built from the calendar fields of ``value`` as given (no timezone
    conversion), so the same timestamp always lands in the same bucket:

    - daily: ``YYYY-MM-DD``
    - weekly: ``YYYY-Www``, weeks start on Sunday
    - monthly: ``YYYY-MM``
    - quarterly: ``YYYY-Qn``
    """
    tz = value.tzinfo
    year, month, day = value.year, value.month, value.day

    if period_type == "daily":
        start = datetime(year, month, day, tzinfo=tz)
        end = datetime(year, month, day, 23, 59, 59, tzinfo=tz)
        key = f"{year:04d}-{month:02d}-{day:02d}"

    elif period_type == "weekly":
        day_start = datetime(year, month, day, tzinfo=tz)
        start = day_start - timedelta(days=_sunday_weekday(day_start))
        end = start + timedelta(days=6, hours=23, minutes=59, seconds=59, milliseconds=999)
        first_of_year = datetime(year, 1, 1, tzinfo=tz)
        # Week start may fall in the previous year; the key still uses this year
        days_since_first = (start - first_of_year).days
        week_number = math.ceil((days_since_first + _sunday_weekday(first_of_year) + 1) / 7)
        key = f"{year:04d}-W{week_number:02d}"

    elif period_type == "monthly":
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1, tzinfo=tz)
        end = datetime(year, month, last_day, 23, 59, 59, tzinfo=tz)
        key = f"{year:04d}-{month:02d}"

    elif period_type == "quarterly":
        quarter = (month - 1) // 3 + 1
        first_month = (quarter - 1) * 3 + 1
        last_month = first_month + 2
        start = datetime(year, first_month, 1, tzinfo=tz)
        end = datetime(year, last_month, calendar.monthrange(year, last_month)[1], 23, 59, 59, tzinfo=tz)
        key = f"{year:04d}-Q{quarter}"

    else:
        raise ValueError(f"Invalid period type: {period_type}")

    return PeriodInfo(period_type=period_type, key=key, start=start, end=end)


def format_period_label(period_type: str, period_key: str, period_start: datetime) -> str:
    """Human readable label used by trend charts"""
    if period_type == "weekly":
        return f"Week {period_key.split('-W')[-1]}"
    if period_type == "quarterly":
        return f"Q{period_key.split('-Q')[-1]} {period_start.year}"
    if period_type == "daily":
        return period_key
    return period_start.strftime("%b %Y")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drop timezone info after converting to UTC; naive values are assumed UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
