"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Any, Optional

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def coerce_identifier(value: Any) -> Any:
    """Accept numeric identifiers from the API and normalize them to strings"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


def blank_to_none(value: Any) -> Any:
    """
    Treat empty or whitespace-only strings as missing.

    Args:
        value: Raw form value

    Returns:
        None for blank strings, the stripped string otherwise, other values untouched
    """
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def strip_timezone(value: Optional[datetime]) -> Optional[datetime]:
    """
    Keep the wall-clock reading of a datetime and drop its offset.

    Appointment times are local wall-clock values; an offset sent by the API
    is ignored rather than converted, so a stored "10:00" always stays 10:00.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


def parse_calendar_date(value: Any) -> date:
    """
    Parse a calendar date from a form value.

    Args:
        value: date, datetime, or "YYYY-MM-DD" string

    Returns:
        datetime.date

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not ISO_DATE_PATTERN.match(value):
            raise ValueError("Date must be in YYYY-MM-DD format")
        return date.fromisoformat(value)
    raise ValueError(f"Cannot convert {type(value).__name__} to date")
