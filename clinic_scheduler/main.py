import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

import httpx

from . import config
from .domain.appointments.calendar import CalendarNavigator
from .domain.appointments.pagination import PaginatedQueryCoordinator
from .domain.appointments.repository import AppointmentRepository, TokenProvider
from .domain.scheduling.conflicts import ConflictPolicy
from .domain.scheduling.schemas import Actor
from .domain.scheduling.service import AppointmentScheduler
from .domain.scheduling.time_slots import TimeSlotCatalog
from .services.notification_service import Notifier

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@dataclass
class SchedulingContext:
    """Everything one signed-in session needs, wired together"""

    actor: Actor
    repository: AppointmentRepository
    notifier: Notifier
    calendar: CalendarNavigator
    appointments: PaginatedQueryCoordinator
    scheduler: AppointmentScheduler

    async def resync(self) -> None:
        """Refetch the visible calendar window and list page after a write"""
        await self.calendar.refresh()
        await self.appointments.refresh()

    async def resync_after_delete(self) -> None:
        """Refetch after a delete, stepping the list back when its page emptied"""
        await self.calendar.refresh()
        await self.appointments.after_delete(1)

    async def load(self) -> None:
        await self.resync()

    def known_appointments(self) -> list:
        """Appointments the conflict check runs against, scoped for constrained roles"""
        if self.scheduler.policy.is_constrained(self.actor):
            return self.calendar.for_resource(self.actor.resource_id or self.actor.user_id)
        return self.calendar.snapshot()


def build_context(
    actor: Actor,
    token_provider: Optional[TokenProvider] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    policy: Optional[ConflictPolicy] = None,
    reference: Optional[date] = None,
) -> SchedulingContext:
    repository = AppointmentRepository(
        base_url=base_url, token_provider=token_provider, transport=transport
    )
    notifier = Notifier()
    calendar = CalendarNavigator(repository, reference=reference, notifier=notifier)
    appointments = PaginatedQueryCoordinator(repository, notifier=notifier)
    scheduler = AppointmentScheduler(
        repository, catalog=TimeSlotCatalog(), policy=policy, notifier=notifier
    )

    context = SchedulingContext(
        actor=actor,
        repository=repository,
        notifier=notifier,
        calendar=calendar,
        appointments=appointments,
        scheduler=scheduler,
    )
    scheduler.resync = context.resync
    scheduler.on_delete = context.resync_after_delete

    logger.info(f"✅ Scheduling context ready for {actor.role} {actor.user_id} ({repository.base_url})")
    return context
