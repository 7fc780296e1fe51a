"""
Paginated appointment list coordinator

Owns the list query state (page, size, sort, filters, search) and keeps the
displayed page consistent with the server:
- every state change schedules one debounced fetch
- filter, search and page-size changes go back to page 1
- a response that shows the current page no longer exists is not displayed;
  the page is clamped and refetched immediately
"""

import logging
import math
from collections.abc import Callable
from typing import Any, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ... import config
from ...exceptions import RemoteError, ValidationError
from ...services.notification_service import Notifier
from ...utils.debounce import SequencedDebouncer
from .repository import AppointmentRepository
from .schemas import DateFilter, PageQuery, PageResult, SortOrder

logger = logging.getLogger(__name__)


class PageWindow(BaseModel):
    """Numbers for the "Showing X to Y of Z" footer"""

    first_item: int
    last_item: int
    total_items: int
    total_pages: int
    is_first: bool
    is_last: bool


def max_page_for(filtered_total: int, page_size: int) -> int:
    return max(1, math.ceil(filtered_total / page_size))


class PaginatedQueryCoordinator:
    def __init__(
        self,
        repository: AppointmentRepository,
        notifier: Optional[Notifier] = None,
        page_size: Optional[int] = None,
        debounce_ms: Optional[int] = None,
        on_change: Optional[Callable[[PageResult], Any]] = None,
    ):
        self.repository = repository
        self.notifier = notifier or Notifier()
        self.on_change = on_change
        self.query = PageQuery(page_size=page_size or config.DEFAULT_PAGE_SIZE)
        self.result: Optional[PageResult] = None
        self._debouncer: SequencedDebouncer[PageResult] = SequencedDebouncer(
            fetch=self._fetch,
            apply=self._apply,
            delay_ms=config.QUERY_DEBOUNCE_MS if debounce_ms is None else debounce_ms,
            on_error=self._report,
            name="appointment page",
        )

    # =========================================================================
    # State changes
    # =========================================================================

    def _update(self, reset_page: bool = False, **changes) -> None:
        if reset_page:
            changes["page"] = 1
        self.query = self.query.model_copy(update=changes)
        self._debouncer.trigger()

    def set_page(self, page: int) -> None:
        self._update(page=max(1, page))

    def set_page_size(self, page_size: int) -> None:
        if page_size not in config.PAGE_SIZE_OPTIONS:
            raise ValidationError(
                ValidationError.INVALID_PAGE_SIZE,
                f"Page size must be one of {', '.join(map(str, config.PAGE_SIZE_OPTIONS))}",
                field="page_size",
            )
        self._update(reset_page=True, page_size=page_size)

    def set_search(self, search: str) -> None:
        self._update(reset_page=True, search=search or "")

    def _checked(self, reason: str, field: str, value: Any) -> None:
        """Validate one query field before touching state so a bad value leaves the query intact"""
        try:
            PageQuery(**{field: value})
        except PydanticValidationError as e:
            raise ValidationError(reason, f"Unsupported {field.replace('_', ' ')}: {value!r}", field=field) from e

    def set_status_filter(self, status_filter: str) -> None:
        self._checked(ValidationError.INVALID_FILTER, "status_filter", status_filter)
        self._update(reset_page=True, status_filter=status_filter)

    def set_date_filter(self, date_filter: DateFilter) -> None:
        self._checked(ValidationError.INVALID_FILTER, "date_filter", date_filter)
        self._update(reset_page=True, date_filter=date_filter)

    def set_sort(self, sort: str, order: SortOrder = "asc") -> None:
        """Change sort column/direction, the current page is kept"""
        self._checked(ValidationError.INVALID_SORT, "order", order)
        self._update(sort=sort, order=order)

    def toggle_sort(self, sort: str) -> None:
        """Header click: same column flips direction, a new column sorts ascending"""
        if self.query.sort == sort:
            order = "desc" if self.query.order == "asc" else "asc"
        else:
            order = "asc"
        self.set_sort(sort, order)

    async def refresh(self) -> Optional[PageResult]:
        """Immediate refetch of the current page, used after writes"""
        return await self._debouncer.fetch_now()

    async def after_delete(self, removed_count: int = 1) -> Optional[PageResult]:
        """Step back one page when the delete emptied the page, then refetch"""
        if self.result is not None and self.query.page > 1 and removed_count >= len(self.result.items):
            self.query = self.query.model_copy(update={"page": self.query.page - 1})
            logger.info(f"🔄 Page emptied by delete, moving to page {self.query.page}")
        return await self.refresh()

    async def settle(self) -> None:
        """Wait for pending debounced fetches to finish"""
        await self._debouncer.drain()

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def page(self) -> int:
        return self.query.page

    @property
    def max_page(self) -> int:
        filtered = self.result.filtered_total_count if self.result else 0
        return max_page_for(filtered, self.query.page_size)

    @property
    def latest_sequence(self) -> int:
        return self._debouncer.latest_sequence

    def page_window(self) -> PageWindow:
        total = self.result.filtered_total_count if self.result else 0
        total_pages = max_page_for(total, self.query.page_size)
        first_item = (self.query.page - 1) * self.query.page_size + 1 if total else 0
        last_item = min(self.query.page * self.query.page_size, total)
        return PageWindow(
            first_item=first_item,
            last_item=last_item,
            total_items=total,
            total_pages=total_pages,
            is_first=self.query.page <= 1,
            is_last=self.query.page >= total_pages,
        )

    # =========================================================================
    # Fetch plumbing
    # =========================================================================

    async def _fetch(self) -> PageResult:
        return await self.repository.fetch_page(self.query)

    async def _apply(self, result: PageResult) -> None:
        last_page = max_page_for(result.filtered_total_count, self.query.page_size)
        if self.query.page > last_page:
            logger.info(
                f"🔄 Page {self.query.page} is past the last page ({last_page}), "
                f"clamping and refetching"
            )
            self.query = self.query.model_copy(update={"page": last_page})
            await self._debouncer.fetch_now()
            return

        self.result = result
        if self.on_change is not None:
            self.on_change(result)

    def _report(self, error: RemoteError) -> None:
        self.notifier.error(f"Failed to fetch appointments: {error.message}")
