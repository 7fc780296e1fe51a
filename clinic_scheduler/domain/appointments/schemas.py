"""Appointment domain schemas - Pydantic models for remote records and list queries"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...shared.validators import coerce_identifier, strip_timezone

SLOT_MINUTES = 30

DateFilter = Literal["all", "today", "tomorrow", "week", "overdue"]
SortOrder = Literal["asc", "desc"]


class Status(str, Enum):
    """Appointment status, serialized with the exact wire literals"""

    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({Status.COMPLETED, Status.CANCELLED})


class Appointment(BaseModel):
    """A booked appointment as returned by the remote API"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    resource_id: str = Field(alias="resourceId")
    patient_id: str = Field(alias="patientId")
    title: str
    description: Optional[str] = None
    comments: Optional[str] = None
    start: datetime = Field(alias="appointmentDate")
    end: Optional[datetime] = Field(default=None, alias="endTime")
    cost: Optional[float] = Field(default=None, ge=0)
    treatment: Optional[str] = None
    status: Status = Status.SCHEDULED
    next_appointment_date: Optional[datetime] = Field(default=None, alias="nextAppointmentDate")
    files: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("id", "resource_id", "patient_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return coerce_identifier(value)

    @field_validator("start", "end", "next_appointment_date")
    @classmethod
    def _wall_clock(cls, value: Optional[datetime]) -> Optional[datetime]:
        return strip_timezone(value)

    @model_validator(mode="after")
    def _default_end(self) -> "Appointment":
        # Records without an end time occupy a single slot
        if self.end is None:
            self.end = self.start + timedelta(minutes=SLOT_MINUTES)
        return self

    def to_record(self) -> dict[str, Any]:
        """Serialize back to the camelCase wire shape"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class PatientOption(BaseModel):
    """Entry of the patient dropdown"""

    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_identifier(value)


class PageQuery(BaseModel):
    """Paged, filtered and sorted appointment list request"""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)
    search: str = ""
    sort: str = "appointmentDate"
    order: SortOrder = "desc"
    status_filter: str = "all"
    date_filter: DateFilter = "all"

    @field_validator("status_filter")
    @classmethod
    def _known_status(cls, value: str) -> str:
        if value != "all" and value not in {status.value for status in Status}:
            raise ValueError(f"Unknown status filter: {value}")
        return value

    def to_params(self) -> dict[str, Any]:
        """Query string parameters understood by the list endpoint"""
        params: dict[str, Any] = {
            "page": self.page,
            "pageSize": self.page_size,
            "sort": self.sort,
            "order": self.order,
        }
        if self.search.strip():
            params["search"] = self.search.strip()
        if self.status_filter != "all":
            params["status"] = self.status_filter
        if self.date_filter != "all":
            params["date"] = self.date_filter
        return params


class PageResult(BaseModel):
    """One page of appointments plus the counts the list header shows"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    items: list[Appointment] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount", ge=0)
    filtered_total_count: Optional[int] = Field(default=None, alias="filteredTotalCount", ge=0)
    today_count: int = Field(default=0, alias="todayCount")
    completed_count: int = Field(default=0, alias="completedCount")
    overdue_count: int = Field(default=0, alias="overdueCount")

    @model_validator(mode="after")
    def _default_filtered_total(self) -> "PageResult":
        if self.filtered_total_count is None:
            self.filtered_total_count = self.total_count
        return self

    @property
    def aggregate_counts(self) -> dict[str, int]:
        """Auxiliary integer counts the server sent beyond the known ones"""
        extra = self.model_extra or {}
        return {key: value for key, value in extra.items() if isinstance(value, int)}
