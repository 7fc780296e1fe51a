"""
Date Range Calculator

Calendar-aligned windows for the month and week views. A window always
starts on a Sunday at 00:00:00.000 and ends on a Saturday at 23:59:59.999.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Union

from .schemas import DateRange

DateLike = Union[date, datetime]

START_OF_DAY = time(0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


def _as_date(reference: DateLike) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def days_since_sunday(day: date) -> int:
    # date.weekday(): Monday == 0 ... Sunday == 6
    return (day.weekday() + 1) % 7


def first_of_month(reference: DateLike) -> date:
    return _as_date(reference).replace(day=1)


def last_of_month(reference: DateLike) -> date:
    day = _as_date(reference)
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def start_of_week(reference: DateLike) -> date:
    """Sunday on or before the reference date"""
    day = _as_date(reference)
    return day - timedelta(days=days_since_sunday(day))


def end_of_week(reference: DateLike) -> date:
    """Saturday on or after the reference date"""
    return start_of_week(reference) + timedelta(days=6)


def shift_month(reference: DateLike, months: int) -> date:
    """
    Move a date by whole months, clamping the day to the target month's length.

    shift_month(date(2024, 1, 31), 1) -> date(2024, 2, 29)
    """
    day = _as_date(reference)
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _window(first: date, last: date) -> DateRange:
    return DateRange(
        start=datetime.combine(first, START_OF_DAY),
        end=datetime.combine(last, END_OF_DAY),
    )


def month_range(reference: DateLike) -> DateRange:
    """Sunday before the 1st through the Saturday after the last day of the month"""
    return _window(start_of_week(first_of_month(reference)), end_of_week(last_of_month(reference)))


def week_range(reference: DateLike) -> DateRange:
    """Sunday..Saturday window containing the reference date"""
    return _window(start_of_week(reference), end_of_week(reference))


def day_range(reference: DateLike) -> DateRange:
    day = _as_date(reference)
    return _window(day, day)
