"""Appointment scheduler - validation, conflict checks and persistence of bookings"""

import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Iterable
from datetime import date, datetime
from typing import Any, Optional

from ... import config
from ...exceptions import ConflictError, RemoteError, ValidationError
from ...services.notification_service import Notifier
from ...shared.validators import parse_calendar_date
from ..appointments.repository import AppointmentRepository
from ..appointments.schemas import Appointment, Status
from .conflicts import ConflictPolicy, RolePolicy
from .schemas import Actor, AppointmentForm, ConflictResult
from .time_slots import SLOT_MINUTES, TimeSlotCatalog

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    ("patient_id", "Patient"),
    ("title", "Title"),
    ("date", "Date"),
    ("start_label", "Start time"),
    ("end_label", "End time"),
)

Resync = Callable[[], Optional[Awaitable[Any]]]


class AppointmentScheduler:
    """
    Orchestrates appointment writes.

    Input is validated and checked for conflicts locally; only a clean booking
    is forwarded to the remote API. After a confirmed write the resync
    callback re-runs the active range/page fetch. The scheduler never edits
    loaded appointment state itself.
    """

    def __init__(
        self,
        repository: AppointmentRepository,
        catalog: Optional[TimeSlotCatalog] = None,
        policy: Optional[ConflictPolicy] = None,
        notifier: Optional[Notifier] = None,
        resync: Optional[Resync] = None,
        on_delete: Optional[Resync] = None,
    ):
        self.repository = repository
        self.catalog = catalog or TimeSlotCatalog()
        self.policy = policy or RolePolicy()
        self.notifier = notifier or Notifier()
        self.resync = resync
        # Deletes may need their own refetch (page step back); defaults to resync
        self.on_delete = on_delete

    # =========================================================================
    # Validation and derivation
    # =========================================================================

    def validate(self, form: AppointmentForm) -> tuple[datetime, datetime]:
        """
        Validate a form and derive its interval, failing on the first problem.

        Order: required fields, date, slot labels, end after start, cost.

        Returns:
            tuple: (start, end) naive wall-clock datetimes

        Raises:
            ValidationError: with a distinct reason per failure
        """
        for field, label in REQUIRED_FIELDS:
            if getattr(form, field) is None:
                raise ValidationError(
                    ValidationError.MISSING_FIELD, f"{label} is required", field=field
                )

        try:
            day = parse_calendar_date(form.date)
        except ValueError as e:
            raise ValidationError(ValidationError.INVALID_DATE, str(e), field="date") from e

        start, end = self.derive_interval(day, form.start_label, form.end_label)

        if form.cost is not None and (not math.isfinite(form.cost) or form.cost < 0):
            raise ValidationError(
                ValidationError.NEGATIVE_COST, "Cost must be a non-negative amount", field="cost"
            )

        return start, end

    def derive_interval(self, day: date, start_label: str, end_label: str) -> tuple[datetime, datetime]:
        """Combine a calendar date with two slot labels, no timezone conversion"""
        start_index = self.catalog.index_of(start_label)
        if start_index is None:
            raise ValidationError(
                ValidationError.INVALID_TIME, f"Unknown start time: {start_label}", field="start_label"
            )
        end_index = self.catalog.index_of(end_label)
        if end_index is None:
            raise ValidationError(
                ValidationError.INVALID_TIME, f"Unknown end time: {end_label}", field="end_label"
            )
        if end_index <= start_index:
            raise ValidationError(
                ValidationError.END_NOT_AFTER_START,
                "End time must be after start time",
                field="end_label",
            )

        start = datetime.combine(day, self.catalog.time_of(start_label))
        end = datetime.combine(day, self.catalog.time_of(end_label))
        return start, end

    def resource_for(self, actor: Actor, form: AppointmentForm) -> Optional[str]:
        """Constrained roles always book for themselves; others may name a resource"""
        if self.policy.is_constrained(actor):
            return actor.resource_id or actor.user_id
        return form.resource_id or actor.resource_id

    def check_conflicts(
        self,
        actor: Actor,
        start: datetime,
        end: datetime,
        resource_id: Optional[str],
        known: Iterable[Appointment],
        editing_id: Optional[str] = None,
    ) -> ConflictResult:
        """Run the injected policy and raise ConflictError on a clash"""
        known = list(known)
        result = self.policy.check(actor, start, end, resource_id, known, exclude_id=editing_id)
        if result.conflicting:
            conflicting = next((appt for appt in known if appt.id == result.with_id), None)
            logger.warning(
                f"⚠️ Booking for resource {resource_id} at {start:%Y-%m-%d %H:%M} "
                f"conflicts with {result.with_ids}"
            )
            raise ConflictError(result, conflicting)
        return result

    def build_payload(
        self, form: AppointmentForm, day: date, resource_id: Optional[str] = None
    ) -> dict[str, Any]:
        """Create/update body with canonical slot labels"""
        slots = self.catalog.generate()
        payload: dict[str, Any] = {
            "patientId": form.patient_id,
            "title": form.title,
            "date": day.isoformat(),
            "startTime": slots[self.catalog.index_of(form.start_label)].label,
            "endTime": slots[self.catalog.index_of(form.end_label)].label,
            "status": Status(form.status).value,
        }

        optional = {
            "description": form.description,
            "comments": form.comments,
            "cost": form.cost,
            "treatment": form.treatment,
            "resourceId": resource_id,
            "nextAppointmentDate": (
                form.next_appointment_date.isoformat(timespec="minutes")
                if form.next_appointment_date
                else None
            ),
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    def prefill_for_day(self, day: date, actor: Actor) -> AppointmentForm:
        """Blank form for a click on a calendar day, one slot at the default hour"""
        start_label = self.catalog.slot_at(config.DEFAULT_APPOINTMENT_HOUR * 60).label
        return AppointmentForm(
            date=day,
            start_label=start_label,
            end_label=self.catalog.next(start_label),
            resource_id=actor.resource_id,
        )

    # =========================================================================
    # Remote operations
    # =========================================================================

    async def save(
        self,
        form: AppointmentForm,
        known: Iterable[Appointment],
        actor: Actor,
        editing_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Create or update an appointment.

        Args:
            form: raw form fields
            known: appointments currently loaded for the active window
            actor: signed-in user
            editing_id: id of the appointment being edited, None to create

        Returns:
            dict: fields confirmed by the remote API

        Raises:
            ValidationError: invalid input, nothing sent
            ConflictError: overlapping booking for the same resource, nothing sent
            RemoteError: the API call failed, already reported to the user
        """
        start, end = self.validate(form)
        resource_id = self.resource_for(actor, form)
        self.check_conflicts(actor, start, end, resource_id, known, editing_id)

        payload = self.build_payload(form, start.date(), resource_id)
        try:
            if editing_id:
                confirmed = await self.repository.update(editing_id, payload)
                message = "Appointment updated successfully"
            else:
                confirmed = await self.repository.create(payload)
                message = "Appointment created successfully"
        except RemoteError as e:
            logger.error(f"❌ Error saving appointment: {e}")
            self.notifier.error(f"Failed to save appointment: {e.message}")
            raise

        logger.info(
            f"✅ Saved '{form.title}' for resource {resource_id} "
            f"{start:%Y-%m-%d %H:%M}-{end:%H:%M} ({(end - start).seconds // 60 // SLOT_MINUTES} slots)"
        )
        self.notifier.success(message)
        await self._resync()
        return confirmed

    async def update_status(self, appointment_id: str, status: Status) -> dict[str, Any]:
        """Quick action status change, forwarded as-is to the remote API"""
        status = Status(status)
        try:
            confirmed = await self.repository.update_status(appointment_id, status)
        except RemoteError as e:
            logger.error(f"❌ Error updating status of {appointment_id}: {e}")
            self.notifier.error("Could not update status")
            raise

        self.notifier.success("Appointment status updated")
        await self._resync()
        return confirmed

    async def delete(self, appointment_id: str) -> None:
        try:
            await self.repository.delete(appointment_id)
        except RemoteError as e:
            logger.error(f"❌ Error deleting appointment {appointment_id}: {e}")
            self.notifier.error("Could not delete appointment")
            raise

        self.notifier.success("Appointment deleted successfully")
        await self._resync(self.on_delete)

    async def _resync(self, callback: Optional[Resync] = None) -> None:
        callback = callback or self.resync
        if callback is None:
            return
        outcome = callback()
        if inspect.isawaitable(outcome):
            await outcome
