"""
Calendar Grid Builder

Expands a month into a 7-column grid of day cells and a week into slot rows.
Spill-over days from neighbouring months are real dates flagged as
outside the current month, so appointments falling on them still match.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Optional

from ... import config
from ..appointments.schemas import Appointment
from .date_ranges import days_since_sunday, first_of_month, last_of_month, start_of_week
from .schemas import CalendarCell, WeekGrid, WeekRow
from .time_slots import TimeSlotCatalog

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

DEFAULT_COLOR = "bg-blue-500"
UNASSIGNED_COLOR = "bg-gray-500"
RESOURCE_PALETTE = (
    "bg-red-500",
    "bg-green-500",
    "bg-yellow-500",
    "bg-purple-500",
    "bg-pink-500",
    "bg-indigo-500",
    "bg-teal-500",
    "bg-orange-500",
)


def _by_start(appointments: Iterable[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda appt: (appt.start, appt.id))


def appointments_for_cell(
    cell: CalendarCell, appointments: Iterable[Appointment]
) -> list[Appointment]:
    """Appointments starting on the cell's calendar day, any resource"""
    return _by_start(appt for appt in appointments if appt.start.date() == cell.date)


def build_month_grid(
    year: int, month: int, appointments: Iterable[Appointment] = ()
) -> list[CalendarCell]:
    """
    Build the day cells of a month view.

    Args:
        year: calendar year
        month: 1..12
        appointments: loaded appointments to place into the cells

    Returns:
        list[CalendarCell]: leading previous-month days, every day of the month,
        trailing next-month days; the length is always a multiple of 7
    """
    first = first_of_month(date(year, month, 1))
    last = last_of_month(first)
    appointments = list(appointments)

    leading = days_since_sunday(first)
    current = first - timedelta(days=leading)
    cells = []

    while current <= last or len(cells) % DAYS_PER_WEEK:
        cell = CalendarCell(date=current, in_current_month=current.month == month)
        cell.appointments = appointments_for_cell(cell, appointments)
        cells.append(cell)
        current += timedelta(days=1)

    logger.debug(f"Built {year}-{month:02d} grid: {len(cells)} cells, {leading} leading")
    return cells


def cell_preview(
    cell: CalendarCell, limit: Optional[int] = None
) -> tuple[list[Appointment], int]:
    """First `limit` appointments of a cell and how many are hidden behind "+N more" """
    if limit is None:
        limit = config.CELL_PREVIEW_LIMIT
    visible = cell.appointments[:limit]
    return visible, len(cell.appointments) - len(visible)


def build_week_grid(
    reference: date,
    appointments: Iterable[Appointment],
    catalog: Optional[TimeSlotCatalog] = None,
) -> WeekGrid:
    """
    Build the week view: one row per half-hour slot, one column per weekday.

    Each appointment is placed in the row of the slot its start falls into.
    """
    catalog = catalog or TimeSlotCatalog()
    sunday = start_of_week(reference)
    days = [sunday + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]
    column_of = {day: column for column, day in enumerate(days)}

    buckets: dict[tuple[int, int], list[Appointment]] = {}
    for appt in _by_start(appointments):
        column = column_of.get(appt.start.date())
        if column is None:
            continue
        row = catalog.slot_for(appt.start.time()).index
        buckets.setdefault((row, column), []).append(appt)

    rows = [
        WeekRow(
            slot=slot,
            cells=[buckets.get((slot.index, column), []) for column in range(DAYS_PER_WEEK)],
        )
        for slot in catalog.generate()
    ]
    return WeekGrid(days=days, rows=rows)


def assign_resource_colors(
    resource_ids: Iterable[str], palette: Sequence[str] = RESOURCE_PALETTE
) -> dict[str, str]:
    """Stable colour per resource, assigned in sorted id order and cycling the palette"""
    unique_ids = sorted({resource_id for resource_id in resource_ids if resource_id})
    return {resource_id: palette[i % len(palette)] for i, resource_id in enumerate(unique_ids)}


def color_for(appointment: Appointment, role: str, colors: dict[str, str]) -> str:
    """Supervisors see appointments coloured per resource; everyone else sees one colour"""
    if role in config.SUPERVISOR_ROLES:
        return colors.get(appointment.resource_id, UNASSIGNED_COLOR)
    return DEFAULT_COLOR
