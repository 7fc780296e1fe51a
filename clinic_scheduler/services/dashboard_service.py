"""
Dashboard Service
Summary counts and alert lists for the practitioner dashboard
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from ..domain.appointments.schemas import Appointment, Status
from ..domain.scheduling.date_ranges import day_range

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({Status.SCHEDULED, Status.IN_PROGRESS})


class DashboardSummary(BaseModel):
    total: int = 0
    today: int = 0
    upcoming: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0


class DashboardAlert(BaseModel):
    kind: Literal["today", "overdue"]
    appointment_id: str
    title: str
    start: datetime
    message: str


def is_overdue(appointment: Appointment, now: datetime) -> bool:
    """Still Scheduled although its start time has passed"""
    return appointment.status == Status.SCHEDULED and appointment.start < now


def summarize(appointments: Iterable[Appointment], now: Optional[datetime] = None) -> DashboardSummary:
    """
    Count appointments for the dashboard header cards.

    Args:
        appointments: appointments visible to the current user
        now: reference wall-clock time, defaults to datetime.now()

    Returns:
        DashboardSummary: total, today, upcoming, completed, pending, overdue
    """
    now = now or datetime.now()
    summary = DashboardSummary()
    today = day_range(now)

    for appt in appointments:
        summary.total += 1
        if today.contains(appt.start):
            summary.today += 1
        if appt.status == Status.SCHEDULED and appt.start > now:
            summary.upcoming += 1
        if appt.status == Status.COMPLETED:
            summary.completed += 1
        if appt.status in PENDING_STATUSES:
            summary.pending += 1
        if is_overdue(appt, now):
            summary.overdue += 1

    logger.debug(f"Dashboard summary: {summary.model_dump()}")
    return summary


def build_alerts(appointments: Iterable[Appointment], now: Optional[datetime] = None) -> list[DashboardAlert]:
    """Today's Scheduled appointments first, then overdue ones from earlier days"""
    now = now or datetime.now()
    appointments = sorted(appointments, key=lambda appt: appt.start)
    today = day_range(now)

    today_alerts = [
        DashboardAlert(
            kind="today",
            appointment_id=appt.id,
            title=appt.title,
            start=appt.start,
            message=f"Upcoming today at {appt.start:%H:%M}: {appt.title}",
        )
        for appt in appointments
        if appt.status == Status.SCHEDULED and today.contains(appt.start) and appt.start >= now
    ]
    overdue_alerts = [
        DashboardAlert(
            kind="overdue",
            appointment_id=appt.id,
            title=appt.title,
            start=appt.start,
            message=f"Overdue since {appt.start:%Y-%m-%d %H:%M}: {appt.title}",
        )
        for appt in appointments
        if is_overdue(appt, now)
    ]
    return today_alerts + overdue_alerts
