"""Shared test fixtures for clinic_scheduler tests."""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

import pytest

from clinic_scheduler.domain.appointments.schemas import Appointment, PageQuery, PageResult, Status
from clinic_scheduler.domain.scheduling.schemas import Actor
from clinic_scheduler.domain.scheduling.time_slots import TimeSlotCatalog
from clinic_scheduler.exceptions import RemoteError
from clinic_scheduler.services.notification_service import Notifier


def make_appointment(
    appointment_id: str,
    start: datetime,
    end: Optional[datetime] = None,
    resource_id: str = "R1",
    title: Optional[str] = None,
    status: Status = Status.SCHEDULED,
    patient_id: str = "P1",
) -> Appointment:
    return Appointment(
        id=appointment_id,
        resource_id=resource_id,
        patient_id=patient_id,
        title=title or f"Appointment {appointment_id}",
        start=start,
        end=end,
        status=status,
    )


class FakeRepository:
    """In-memory stand-in for AppointmentRepository that records every call."""

    def __init__(self):
        self.calls: list[tuple[str, Any]] = []
        self.page_queries: list[PageQuery] = []
        self.range_calls: list[tuple[str, str]] = []
        self.page_handler: Callable[[PageQuery], PageResult] = lambda query: PageResult()
        self.range_result: list[Appointment] = []
        self.fail_with: Optional[RemoteError] = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def fetch_page(self, query: PageQuery) -> PageResult:
        self.page_queries.append(query)
        self._maybe_fail()
        return self.page_handler(query)

    async def fetch_by_range(self, start_iso: str, end_iso: str) -> list[Appointment]:
        self.range_calls.append((start_iso, end_iso))
        self._maybe_fail()
        return list(self.range_result)

    async def create(self, payload: dict) -> dict:
        self.calls.append(("create", payload))
        self._maybe_fail()
        return {"id": "new-1", **payload}

    async def update(self, appointment_id: str, payload: dict) -> dict:
        self.calls.append(("update", (appointment_id, payload)))
        self._maybe_fail()
        return {"id": appointment_id, **payload}

    async def update_status(self, appointment_id: str, status: Status) -> dict:
        self.calls.append(("update_status", (appointment_id, status)))
        self._maybe_fail()
        return {"id": appointment_id, "status": status.value}

    async def delete(self, appointment_id: str) -> None:
        self.calls.append(("delete", appointment_id))
        self._maybe_fail()


@pytest.fixture
def catalog() -> TimeSlotCatalog:
    return TimeSlotCatalog()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def fake_repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def student() -> Actor:
    """Constrained actor booking for their own resource."""
    return Actor(user_id="U1", role="Student", resource_id="R1")


@pytest.fixture
def professor() -> Actor:
    return Actor(user_id="U9", role="Professor")


@pytest.fixture
def morning_booking() -> Appointment:
    """Resource R1 booked 10:00-10:30 on 2024-03-15."""
    return make_appointment("A1", datetime(2024, 3, 15, 10, 0), datetime(2024, 3, 15, 10, 30))
