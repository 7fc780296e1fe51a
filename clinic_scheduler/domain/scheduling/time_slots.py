"""
Time Slot Catalog

The fixed universe of 48 half-hour labels for one day ("12:00 AM" ... "11:30 PM").
Labels are produced from the integral minute-of-day by a pure formatter, so
ordering and comparisons never depend on the runtime locale.
"""

import re
from datetime import time
from functools import lru_cache
from typing import Optional

from .schemas import SLOTS_PER_DAY, TimeSlot

SLOT_MINUTES = 30
MINUTES_PER_DAY = SLOTS_PER_DAY * SLOT_MINUTES

_LABEL_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def format_slot_label(minute_of_day: int) -> str:
    """
    Format a minute-of-day as a 12-hour clock label.

    Args:
        minute_of_day: 0..1439

    Returns:
        str: e.g. 0 -> "12:00 AM", 810 -> "1:30 PM"
    """
    if not 0 <= minute_of_day < MINUTES_PER_DAY:
        raise ValueError(f"minute_of_day out of range: {minute_of_day}")

    hour, minute = divmod(minute_of_day, 60)
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12
    if display_hour == 0:
        display_hour = 12
    return f"{display_hour}:{minute:02d} {period}"


def parse_slot_label(label: str) -> Optional[int]:
    """
    Parse a slot label back to its minute-of-day.

    Returns None when the string is not a 12-hour label on a half-hour
    boundary ("9:15 AM", "13:00 PM" and "9:00" are all rejected).
    """
    if not isinstance(label, str):
        return None

    match = _LABEL_PATTERN.match(label)
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = match.group(3).upper()

    if not 1 <= hour <= 12 or minute not in (0, 30):
        return None

    hour = hour % 12
    if period == "PM":
        hour += 12
    return hour * 60 + minute


@lru_cache(maxsize=1)
def _build_slots() -> tuple[TimeSlot, ...]:
    return tuple(
        TimeSlot(index=i, label=format_slot_label(i * SLOT_MINUTES)) for i in range(SLOTS_PER_DAY)
    )


class TimeSlotCatalog:
    """Ordered half-hour slots of a day with label lookups"""

    def __init__(self):
        self._slots = _build_slots()
        self._index_by_label = {slot.label: slot.index for slot in self._slots}

    def generate(self) -> tuple[TimeSlot, ...]:
        """All 48 slots in chronological order"""
        return self._slots

    def labels(self) -> tuple[str, ...]:
        return tuple(slot.label for slot in self._slots)

    def index_of(self, label: Optional[str]) -> Optional[int]:
        """Position of a label in the day, or None if it is not a slot label"""
        if label is None:
            return None
        index = self._index_by_label.get(label)
        if index is not None:
            return index
        # Tolerate "09:00 am" style input, but only for canonical half hours
        minute_of_day = parse_slot_label(label)
        if minute_of_day is None:
            return None
        return minute_of_day // SLOT_MINUTES

    def next(self, label: str) -> Optional[str]:
        """Label of the following slot, None after the last slot of the day"""
        index = self.index_of(label)
        if index is None or index + 1 >= SLOTS_PER_DAY:
            return None
        return self._slots[index + 1].label

    def slot_at(self, minute_of_day: int) -> TimeSlot:
        """Slot containing the given minute of the day"""
        if not 0 <= minute_of_day < MINUTES_PER_DAY:
            raise ValueError(f"minute_of_day out of range: {minute_of_day}")
        return self._slots[minute_of_day // SLOT_MINUTES]

    def slot_for(self, moment: time) -> TimeSlot:
        return self.slot_at(moment.hour * 60 + moment.minute)

    def time_of(self, label: str) -> Optional[time]:
        """Wall-clock time at the start of a slot"""
        index = self.index_of(label)
        if index is None:
            return None
        hour, minute = divmod(index * SLOT_MINUTES, 60)
        return time(hour, minute)
