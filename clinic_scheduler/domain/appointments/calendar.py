"""Calendar navigator - owns the visible month/week window and its appointments"""

import logging
from datetime import date, timedelta
from typing import Literal, Optional

from ... import config
from ...exceptions import RemoteError
from ...services.notification_service import Notifier
from ...utils.debounce import SequencedDebouncer
from ..scheduling.calendar_grid import build_month_grid, build_week_grid
from ..scheduling.date_ranges import month_range, shift_month, week_range
from ..scheduling.schemas import CalendarCell, DateRange, WeekGrid
from .repository import AppointmentRepository
from .schemas import Appointment

logger = logging.getLogger(__name__)

CalendarView = Literal["month", "week"]


class CalendarNavigator:
    """
    Month/week navigation with a debounced range fetch per move.

    The loaded appointments are replaced wholesale by each applied fetch;
    callers get copies, never the internal list.
    """

    def __init__(
        self,
        repository: AppointmentRepository,
        reference: Optional[date] = None,
        view: CalendarView = "month",
        notifier: Optional[Notifier] = None,
        debounce_ms: Optional[int] = None,
    ):
        self.repository = repository
        self.notifier = notifier or Notifier()
        self.reference = reference or date.today()
        self.view: CalendarView = view
        self.loaded_range: Optional[DateRange] = None
        self._appointments: list[Appointment] = []
        self._debouncer: SequencedDebouncer[tuple[DateRange, list[Appointment]]] = SequencedDebouncer(
            fetch=self._fetch,
            apply=self._apply,
            delay_ms=config.CALENDAR_DEBOUNCE_MS if debounce_ms is None else debounce_ms,
            on_error=self._report,
            name="calendar range",
        )

    def current_range(self) -> DateRange:
        if self.view == "week":
            return week_range(self.reference)
        return month_range(self.reference)

    # Navigation

    def _move_to(self, reference: date) -> None:
        self.reference = reference
        self._debouncer.trigger()

    def next(self) -> None:
        if self.view == "week":
            self._move_to(self.reference + timedelta(weeks=1))
        else:
            self._move_to(shift_month(self.reference, 1))

    def previous(self) -> None:
        if self.view == "week":
            self._move_to(self.reference - timedelta(weeks=1))
        else:
            self._move_to(shift_month(self.reference, -1))

    def today(self) -> None:
        self._move_to(date.today())

    def go_to(self, reference: date) -> None:
        self._move_to(reference)

    def set_view(self, view: CalendarView) -> None:
        if view not in ("month", "week"):
            raise ValueError(f"Unknown calendar view: {view}")
        self.view = view
        self._debouncer.trigger()

    async def refresh(self) -> Optional[tuple[DateRange, list[Appointment]]]:
        """Immediate refetch of the visible window"""
        return await self._debouncer.fetch_now()

    async def settle(self) -> None:
        await self._debouncer.drain()

    # Views

    def snapshot(self) -> list[Appointment]:
        return list(self._appointments)

    def for_resource(self, resource_id: Optional[str]) -> list[Appointment]:
        return [appt for appt in self._appointments if appt.resource_id == resource_id]

    def month_grid(self) -> list[CalendarCell]:
        return build_month_grid(self.reference.year, self.reference.month, self._appointments)

    def week_grid(self) -> WeekGrid:
        return build_week_grid(self.reference, self._appointments)

    # Fetch plumbing

    async def _fetch(self) -> tuple[DateRange, list[Appointment]]:
        window = self.current_range()
        appointments = await self.repository.fetch_by_range(window.start_iso(), window.end_iso())
        return window, appointments

    def _apply(self, fetched: tuple[DateRange, list[Appointment]]) -> None:
        window, appointments = fetched
        self.loaded_range = window
        self._appointments = list(appointments)
        logger.info(
            f"✅ Loaded {len(appointments)} appointments for "
            f"{window.start:%Y-%m-%d} .. {window.end:%Y-%m-%d}"
        )

    def _report(self, error: RemoteError) -> None:
        self.notifier.error(f"Failed to fetch appointments: {error.message}")
