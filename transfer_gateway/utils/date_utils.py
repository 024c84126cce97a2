"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time, timedelta


def add_months(value: date, months: int) -> date:
    """Shift a date by calendar months, clamping the day to the target month's length"""
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def next_run_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next occurrence of hour:minute strictly after now"""
    candidate = datetime.combine(now.date(), time(hour=hour, minute=minute))
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(target: datetime, now: datetime) -> float:
    return max((target - now).total_seconds(), 0.0)
