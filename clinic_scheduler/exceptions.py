"""
Scheduling error taxonomy

Validation and conflict errors are raised and resolved locally; they never
reach the remote API. Remote errors wrap any gateway failure and are reported
to the user once, without retries.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling engine"""


class ValidationError(SchedulingError):
    """Form input rejected before any remote call"""

    MISSING_FIELD = "missing_field"
    INVALID_DATE = "invalid_date"
    INVALID_TIME = "invalid_time"
    END_NOT_AFTER_START = "end_not_after_start"
    NEGATIVE_COST = "negative_cost"
    INVALID_PAGE_SIZE = "invalid_page_size"
    INVALID_FILTER = "invalid_filter"
    INVALID_SORT = "invalid_sort"

    def __init__(self, reason: str, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.field = field
        self.message = message


class ConflictError(SchedulingError):
    """Candidate interval overlaps an existing booking of the same resource"""

    def __init__(self, result: Any, conflicting: Any = None):
        self.result = result
        self.conflicting = conflicting
        if conflicting is not None:
            message = (
                f"Time slot conflicts with '{conflicting.title}' "
                f"({conflicting.start:%Y-%m-%d %H:%M}-{conflicting.end:%H:%M})"
            )
        else:
            message = f"Time slot conflicts with appointment {result.with_id}"
        super().__init__(message)
        self.message = message


class RemoteError(SchedulingError):
    """Network or server failure from a gateway call"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StaleFetchDiscarded(SchedulingError):
    """A fetch response lost the race to a more recently issued fetch"""

    def __init__(self, sequence: int, latest: int):
        super().__init__(f"Discarded response #{sequence}, latest issued is #{latest}")
        self.sequence = sequence
        self.latest = latest
