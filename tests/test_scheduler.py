"""Tests for AppointmentScheduler validation, conflict handling and writes."""

from datetime import date, datetime

import pytest

from clinic_scheduler.domain.appointments.schemas import Status
from clinic_scheduler.domain.scheduling.conflicts import ResourceScopedPolicy, RolePolicy
from clinic_scheduler.domain.scheduling.schemas import Actor, AppointmentForm
from clinic_scheduler.domain.scheduling.service import AppointmentScheduler
from clinic_scheduler.exceptions import ConflictError, RemoteError, ValidationError

from conftest import make_appointment


def make_form(**overrides) -> AppointmentForm:
    fields = {
        "patient_id": "P1",
        "title": "Cleaning",
        "date": "2024-03-15",
        "start_label": "10:00 AM",
        "end_label": "11:00 AM",
    }
    fields.update(overrides)
    return AppointmentForm(**fields)


@pytest.fixture
def resynced():
    return []


@pytest.fixture
def scheduler(fake_repository, catalog, notifier, resynced):
    async def resync():
        resynced.append(True)

    return AppointmentScheduler(
        fake_repository,
        catalog=catalog,
        policy=RolePolicy(constrained_roles={"Student"}),
        notifier=notifier,
        resync=resync,
    )


class TestValidate:
    def test_derives_naive_half_hour_interval(self, scheduler):
        start, end = scheduler.validate(make_form(start_label="10:00 AM", end_label="11:30 AM"))

        assert start == datetime(2024, 3, 15, 10, 0)
        assert end == datetime(2024, 3, 15, 11, 30)
        assert start.tzinfo is None
        assert start < end

    def test_same_start_and_end_is_rejected(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(start_label="9:00 AM", end_label="9:00 AM"))

        assert exc.value.reason == ValidationError.END_NOT_AFTER_START

    def test_end_before_start_is_rejected(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(start_label="2:00 PM", end_label="1:30 PM"))

        assert exc.value.reason == ValidationError.END_NOT_AFTER_START

    @pytest.mark.parametrize("field", ["patient_id", "title", "date", "start_label", "end_label"])
    def test_missing_field_is_named(self, scheduler, field):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(**{field: None}))

        assert exc.value.reason == ValidationError.MISSING_FIELD
        assert exc.value.field == field

    def test_blank_title_counts_as_missing(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(title="   "))

        assert exc.value.field == "title"

    def test_missing_fields_reported_in_order(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(title=None, end_label=None))

        assert exc.value.field == "title"

    def test_invalid_date(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(date="15/03/2024"))

        assert exc.value.reason == ValidationError.INVALID_DATE

    def test_unknown_slot_label(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(start_label="10:10 AM"))

        assert exc.value.reason == ValidationError.INVALID_TIME
        assert exc.value.field == "start_label"

    def test_negative_cost(self, scheduler):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(cost=-5))

        assert exc.value.reason == ValidationError.NEGATIVE_COST

    @pytest.mark.parametrize("cost", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_cost(self, scheduler, cost):
        with pytest.raises(ValidationError) as exc:
            scheduler.validate(make_form(cost=cost))

        assert exc.value.reason == ValidationError.NEGATIVE_COST
        assert exc.value.field == "cost"

    def test_blank_cost_is_absent(self, scheduler):
        form = make_form(cost="")

        assert form.cost is None
        scheduler.validate(form)

    def test_every_ordered_slot_pair_is_accepted(self, scheduler, catalog):
        labels = catalog.labels()

        for i, start_label in enumerate(labels):
            for end_label in labels[i + 1:]:
                start, end = scheduler.validate(make_form(start_label=start_label, end_label=end_label))

                assert start < end
                assert start.date() == end.date() == date(2024, 3, 15)
                for moment in (start, end):
                    assert moment.minute % 30 == 0
                    assert moment.second == 0
                    assert moment.tzinfo is None

    def test_every_unordered_slot_pair_is_rejected(self, scheduler, catalog):
        labels = catalog.labels()

        for i, start_label in enumerate(labels):
            for end_label in labels[: i + 1]:
                with pytest.raises(ValidationError) as exc:
                    scheduler.validate(make_form(start_label=start_label, end_label=end_label))

                assert exc.value.reason == ValidationError.END_NOT_AFTER_START


class TestBuildPayload:
    def test_canonical_payload(self, scheduler):
        form = make_form(start_label="09:00 am", end_label="9:30 AM", cost=120, description="")

        payload = scheduler.build_payload(form, date(2024, 3, 15), "R1")

        assert payload == {
            "patientId": "P1",
            "title": "Cleaning",
            "date": "2024-03-15",
            "startTime": "9:00 AM",
            "endTime": "9:30 AM",
            "status": "Scheduled",
            "cost": 120,
            "resourceId": "R1",
        }

    def test_follow_up_date_is_sent(self, scheduler):
        form = make_form(next_appointment_date="2024-04-15T09:00:00+02:00")

        payload = scheduler.build_payload(form, date(2024, 3, 15))

        assert payload["nextAppointmentDate"] == "2024-04-15T09:00"
        assert "resourceId" not in payload

    def test_blank_follow_up_date_is_omitted(self, scheduler):
        payload = scheduler.build_payload(make_form(next_appointment_date=""), date(2024, 3, 15))

        assert "nextAppointmentDate" not in payload


class TestSave:
    @pytest.mark.asyncio
    async def test_conflict_blocks_the_write(self, scheduler, fake_repository, student, morning_booking):
        with pytest.raises(ConflictError) as exc:
            await scheduler.save(make_form(), [morning_booking], student)

        assert exc.value.result.with_id == "A1"
        assert exc.value.conflicting is morning_booking
        assert "Appointment A1" in str(exc.value)
        assert fake_repository.calls == []

    @pytest.mark.asyncio
    async def test_other_resource_is_accepted(
        self, scheduler, fake_repository, morning_booking, resynced, notifier
    ):
        other_student = Actor(user_id="U2", role="Student", resource_id="R2")

        confirmed = await scheduler.save(make_form(), [morning_booking], other_student)

        assert confirmed["id"] == "new-1"
        operation, payload = fake_repository.calls[0]
        assert operation == "create"
        assert payload["resourceId"] == "R2"
        assert resynced == [True]
        assert notifier.latest().level == "success"

    @pytest.mark.asyncio
    async def test_students_always_book_for_themselves(self, scheduler, fake_repository, student):
        await scheduler.save(make_form(resource_id="R7"), [], student)

        assert fake_repository.calls[0][1]["resourceId"] == "R1"

    @pytest.mark.asyncio
    async def test_supervisor_bypasses_check_by_default(
        self, scheduler, fake_repository, professor, morning_booking
    ):
        await scheduler.save(make_form(resource_id="R1"), [morning_booking], professor)

        assert fake_repository.calls[0][0] == "create"

    @pytest.mark.asyncio
    async def test_supervisor_checked_with_scoped_policy(
        self, fake_repository, catalog, professor, morning_booking
    ):
        scheduler = AppointmentScheduler(fake_repository, catalog, policy=ResourceScopedPolicy())

        with pytest.raises(ConflictError):
            await scheduler.save(make_form(resource_id="R1"), [morning_booking], professor)

    @pytest.mark.asyncio
    async def test_editing_excludes_itself(self, scheduler, fake_repository, student, morning_booking):
        form = make_form(start_label="10:00 AM", end_label="11:00 AM")

        await scheduler.save(form, [morning_booking], student, editing_id="A1")

        operation, (appointment_id, payload) = fake_repository.calls[0]
        assert operation == "update"
        assert appointment_id == "A1"
        assert payload["endTime"] == "11:00 AM"

    @pytest.mark.asyncio
    async def test_injected_policy_decides_who_books_for_themselves(
        self, fake_repository, catalog, morning_booking
    ):
        scheduler = AppointmentScheduler(
            fake_repository, catalog, policy=RolePolicy(constrained_roles={"Intern"})
        )
        intern = Actor(user_id="U1", role="Intern")
        booking = morning_booking.model_copy(update={"resource_id": "U1"})

        with pytest.raises(ConflictError) as exc:
            await scheduler.save(make_form(resource_id="R9"), [booking], intern)

        assert exc.value.result.with_id == "A1"
        assert scheduler.resource_for(intern, make_form(resource_id="R9")) == "U1"
        assert fake_repository.calls == []

    @pytest.mark.asyncio
    async def test_invalid_form_never_reaches_the_api(self, scheduler, fake_repository, student):
        with pytest.raises(ValidationError):
            await scheduler.save(make_form(start_label="9:00 AM", end_label="9:00 AM"), [], student)

        assert fake_repository.calls == []

    @pytest.mark.asyncio
    async def test_nan_cost_never_reaches_the_api(self, scheduler, fake_repository, student, resynced):
        with pytest.raises(ValidationError) as exc:
            await scheduler.save(make_form(cost=float("nan")), [], student)

        assert exc.value.reason == ValidationError.NEGATIVE_COST
        assert fake_repository.calls == []
        assert resynced == []

    @pytest.mark.asyncio
    async def test_remote_failure_is_reported_once_and_reraised(
        self, scheduler, fake_repository, notifier, student, resynced
    ):
        fake_repository.fail_with = RemoteError("Server exploded", status_code=500)

        with pytest.raises(RemoteError):
            await scheduler.save(make_form(), [], student)

        errors = [item for item in notifier.items if item.level == "error"]
        assert len(errors) == 1
        assert "Server exploded" in errors[0].message
        assert len(fake_repository.calls) == 1
        assert resynced == []


class TestStatusAndDelete:
    @pytest.mark.asyncio
    async def test_update_status_forwards_and_resyncs(self, scheduler, fake_repository, resynced):
        await scheduler.update_status("A1", "Completed")

        assert fake_repository.calls == [("update_status", ("A1", Status.COMPLETED))]
        assert resynced == [True]

    @pytest.mark.asyncio
    async def test_delete_forwards_and_resyncs(self, scheduler, fake_repository, resynced, notifier):
        await scheduler.delete("A1")

        assert fake_repository.calls == [("delete", "A1")]
        assert resynced == [True]
        assert notifier.latest().message == "Appointment deleted successfully"

    @pytest.mark.asyncio
    async def test_delete_prefers_its_own_refetch(self, scheduler, fake_repository, resynced):
        deleted = []
        scheduler.on_delete = lambda: deleted.append(True)

        await scheduler.delete("A1")
        await scheduler.update_status("A2", Status.CANCELLED)

        assert deleted == [True]
        assert resynced == [True]

    @pytest.mark.asyncio
    async def test_delete_failure(self, scheduler, fake_repository, notifier, resynced):
        fake_repository.fail_with = RemoteError("gone")

        with pytest.raises(RemoteError):
            await scheduler.delete("A1")

        assert notifier.latest().level == "error"
        assert resynced == []


class TestPrefill:
    def test_prefill_for_day(self, scheduler, student, catalog):
        form = scheduler.prefill_for_day(date(2024, 3, 15), student)

        assert form.date == date(2024, 3, 15)
        assert form.start_label == "9:00 AM"
        assert form.end_label == "9:30 AM"
        assert form.resource_id == "R1"

    def test_edit_form_round_trips_through_validation(self, scheduler, catalog, morning_booking):
        form = AppointmentForm.from_appointment(morning_booking, catalog)

        assert scheduler.validate(form) == (morning_booking.start, morning_booking.end)

    def test_edit_form_keeps_follow_up_date(self, catalog, morning_booking):
        booking = morning_booking.model_copy(
            update={"next_appointment_date": datetime(2024, 4, 15, 9, 0)}
        )

        form = AppointmentForm.from_appointment(booking, catalog)

        assert form.next_appointment_date == datetime(2024, 4, 15, 9, 0)
