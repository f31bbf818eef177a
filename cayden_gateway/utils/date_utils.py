"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return utcnow().date()


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from start to end (floored)"""
    return (end - start) // timedelta(days=1)


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for the given day of month, clamped to the month's last day (31 -> 28/29/30)"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(from_date: date, months: int) -> date:
    """Calendar-aware month arithmetic (Jan 31 + 1 month -> Feb 28/29)"""
    return from_date + relativedelta(months=months)
