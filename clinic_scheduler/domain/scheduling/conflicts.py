"""
Conflict Detection

Detects double bookings (overlaps) for a single resource, considering:
- Resource scope (two resources may be booked for the same time)
- Self-exclusion when an existing appointment is being edited

The check is advisory: it only sees the appointments loaded client-side for
the active window. The remote API stays the final authority.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Optional

from ... import config
from ..appointments.schemas import Appointment
from .schemas import Actor, ConflictResult

logger = logging.getLogger(__name__)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: touching intervals do not conflict"""
    return a_start < b_end and a_end > b_start


def find_conflicts(
    start: datetime,
    end: datetime,
    resource_id: str,
    existing: Iterable[Appointment],
    exclude_id: Optional[str] = None,
) -> list[Appointment]:
    """All appointments of the resource that overlap [start, end), in start order"""
    matches = [
        appt
        for appt in existing
        if appt.resource_id == resource_id
        and (exclude_id is None or appt.id != exclude_id)
        and overlaps(start, end, appt.start, appt.end)
    ]
    return sorted(matches, key=lambda appt: (appt.start, appt.id))


def conflicts(
    start: datetime,
    end: datetime,
    resource_id: str,
    existing: Iterable[Appointment],
    exclude_id: Optional[str] = None,
) -> ConflictResult:
    """
    Check a candidate interval against existing bookings.

    Args:
        start: candidate start
        end: candidate end
        resource_id: resource the candidate is booked for
        existing: appointments currently loaded
        exclude_id: appointment being edited, never reported against itself

    Returns:
        ConflictResult: first conflicting id in with_id, all of them in with_ids
    """
    matches = find_conflicts(start, end, resource_id, existing, exclude_id)
    if not matches:
        return ConflictResult(conflicting=False)

    ids = [appt.id for appt in matches]
    logger.debug(f"Conflict for resource {resource_id} {start:%Y-%m-%d %H:%M}: {ids}")
    return ConflictResult(conflicting=True, with_id=ids[0], with_ids=ids)


class ConflictPolicy:
    """
    Decides whether and how a booking is checked for conflicts.

    The policy also owns which roles are constrained to their own resource,
    so the booked resource and the check always agree.
    """

    def __init__(self, constrained_roles: Optional[Iterable[str]] = None):
        if constrained_roles is None:
            constrained_roles = config.CONSTRAINED_ROLES
        self.constrained_roles = frozenset(constrained_roles)

    def is_constrained(self, actor: Actor) -> bool:
        """True when the actor may only book for their own resource"""
        return actor.role in self.constrained_roles

    def check(
        self,
        actor: Actor,
        start: datetime,
        end: datetime,
        resource_id: str,
        existing: Sequence[Appointment],
        exclude_id: Optional[str] = None,
    ) -> ConflictResult:
        raise NotImplementedError


class ResourceScopedPolicy(ConflictPolicy):
    """Check the candidate against the other bookings of its own resource"""

    def check(self, actor, start, end, resource_id, existing, exclude_id=None):
        return conflicts(start, end, resource_id, existing, exclude_id)


class BypassPolicy(ConflictPolicy):
    """Skip the client-side check and leave enforcement to the remote API"""

    def check(self, actor, start, end, resource_id, existing, exclude_id=None):
        return ConflictResult(conflicting=False)


class RolePolicy(ConflictPolicy):
    """
    Pick the policy from the actor's role.

    Roles constrained to their own resource (students) are always checked;
    every other role gets the fallback policy, which bypasses by default.
    """

    def __init__(
        self,
        constrained_roles: Optional[Iterable[str]] = None,
        fallback: Optional[ConflictPolicy] = None,
    ):
        super().__init__(constrained_roles)
        self.scoped = ResourceScopedPolicy(self.constrained_roles)
        self.fallback = fallback or BypassPolicy(self.constrained_roles)

    def for_actor(self, actor: Actor) -> ConflictPolicy:
        if self.is_constrained(actor):
            return self.scoped
        return self.fallback

    def check(self, actor, start, end, resource_id, existing, exclude_id=None):
        return self.for_actor(actor).check(actor, start, end, resource_id, existing, exclude_id)
