"""
Status quick actions for appointments
Lists the forward transitions the UI offers as one-click buttons

Appointment statuses: Scheduled → In Progress → Completed, Scheduled → Cancelled

Note:
- Completed and Cancelled are terminal, no quick action is offered from them
- These are UI offers only; the scheduler does not reject other transitions,
  the remote API decides whether an edited status is accepted
"""

from ..domain.appointments.schemas import Status

# Forward transitions offered as quick actions
QUICK_ACTIONS: dict[Status, tuple[Status, ...]] = {
    Status.SCHEDULED: (Status.IN_PROGRESS, Status.CANCELLED),
    Status.IN_PROGRESS: (Status.COMPLETED,),
    Status.COMPLETED: (),  # Terminal state
    Status.CANCELLED: (),  # Terminal state
}

QUICK_ACTION_LABELS = {
    Status.IN_PROGRESS: "Start",
    Status.COMPLETED: "Complete",
    Status.CANCELLED: "Cancel",
}


def quick_actions(current_status: Status) -> tuple[Status, ...]:
    """Statuses offered as quick actions for an appointment in current_status"""
    return QUICK_ACTIONS.get(Status(current_status), ())


def is_offered_transition(current_status: Status, new_status: Status) -> bool:
    """
    Check whether new_status is one of the quick actions offered from current_status

    Args:
        current_status: Current appointment status
        new_status: Desired new status

    Returns:
        bool: True if the UI offers this transition as a quick action
    """
    return Status(new_status) in quick_actions(current_status)
