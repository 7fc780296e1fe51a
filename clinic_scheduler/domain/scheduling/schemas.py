"""Scheduling domain schemas - slots, windows, grid cells and booking forms"""

import datetime as dt
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...shared.validators import blank_to_none, coerce_identifier, strip_timezone
from ..appointments.schemas import Appointment, Status

SLOTS_PER_DAY = 48


class TimeSlot(BaseModel):
    """One of the 48 half-hour time-of-day labels"""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, lt=SLOTS_PER_DAY)
    label: str

    @property
    def minute_of_day(self) -> int:
        return self.index * 30


class DateRange(BaseModel):
    """Inclusive start/end window sent to the range query"""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("Range start must not be after range end")
        return self

    def start_iso(self) -> str:
        return self.start.isoformat(timespec="milliseconds")

    def end_iso(self) -> str:
        return self.end.isoformat(timespec="milliseconds")

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class CalendarCell(BaseModel):
    """
    One day of a month grid.

    Every cell carries a real date. Days spilling over from the neighbouring
    months are flagged with in_current_month=False instead of being blank.
    """

    date: dt.date
    in_current_month: bool = True
    appointments: list[Appointment] = Field(default_factory=list)


class WeekRow(BaseModel):
    """One slot row of the week view: a list of appointments per weekday"""

    slot: TimeSlot
    cells: list[list[Appointment]]


class WeekGrid(BaseModel):
    days: list[date]
    rows: list[WeekRow]


class ConflictResult(BaseModel):
    conflicting: bool = False
    with_id: Optional[str] = None
    with_ids: list[str] = Field(default_factory=list)


class Actor(BaseModel):
    """The signed-in user driving the scheduler"""

    user_id: str
    role: str
    resource_id: Optional[str] = None

    @field_validator("user_id", "resource_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return coerce_identifier(value)


class AppointmentForm(BaseModel):
    """
    Raw create/edit form fields.

    Every field is optional at this level so the scheduler can report missing
    fields in its own validation order instead of failing on construction.
    """

    patient_id: Optional[str] = None
    title: Optional[str] = None
    date: Optional[Any] = None
    start_label: Optional[str] = None
    end_label: Optional[str] = None
    cost: Optional[float] = None
    description: Optional[str] = None
    comments: Optional[str] = None
    treatment: Optional[str] = None
    status: Status = Status.SCHEDULED
    resource_id: Optional[str] = None
    next_appointment_date: Optional[datetime] = None

    @field_validator("patient_id", "resource_id", mode="before")
    @classmethod
    def _normalize_ids(cls, value: Any) -> Any:
        return blank_to_none(coerce_identifier(value))

    @field_validator(
        "title", "date", "start_label", "end_label", "cost", "description", "comments", "treatment",
        "next_appointment_date",
        mode="before",
    )
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("next_appointment_date")
    @classmethod
    def _wall_clock(cls, value: Optional[datetime]) -> Optional[datetime]:
        return strip_timezone(value)

    @classmethod
    def from_appointment(cls, appointment: Appointment, catalog: Any) -> "AppointmentForm":
        """Prefill the edit form from a loaded appointment"""
        return cls(
            patient_id=appointment.patient_id,
            title=appointment.title,
            date=appointment.start.date(),
            start_label=catalog.slot_for(appointment.start.time()).label,
            end_label=catalog.slot_for(appointment.end.time()).label,
            cost=appointment.cost,
            description=appointment.description,
            comments=appointment.comments,
            treatment=appointment.treatment,
            status=appointment.status,
            resource_id=appointment.resource_id,
            next_appointment_date=appointment.next_appointment_date,
        )
