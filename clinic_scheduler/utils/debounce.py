"""
Debounced, sequence-tagged fetches

Bursts of triggering changes collapse into one request after a short delay.
Every issued request is tagged with a monotonically increasing sequence
number, and only the response of the most recently issued request is applied
(last-issued-wins). Older responses are dropped without reaching the user.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Optional, TypeVar

from ..exceptions import RemoteError, StaleFetchDiscarded

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SequencedDebouncer(Generic[T]):
    """Cancellable debounce timer in front of a sequence-numbered fetch"""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        apply: Callable[[T], Any],
        delay_ms: int,
        on_error: Optional[Callable[[RemoteError], Any]] = None,
        name: str = "fetch",
    ):
        self._fetch = fetch
        self._apply = apply
        self._on_error = on_error
        self.delay = max(delay_ms, 0) / 1000
        self.name = name
        self._sequence = 0
        self._timer: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the most recently issued fetch"""
        return self._sequence

    @property
    def pending(self) -> bool:
        """True while a debounce timer is waiting to fire"""
        return self._timer is not None and not self._timer.done()

    def trigger(self) -> asyncio.Task:
        """Restart the debounce timer; the fetch fires once input settles"""
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._fire_after_delay())
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> None:
        """Drop the pending timer, in-flight requests keep running"""
        if self.pending:
            self._timer.cancel()
            logger.debug(f"{self.name}: debounce timer replaced")
        self._timer = None

    async def fetch_now(self) -> Optional[T]:
        """Skip the delay and issue a fetch immediately"""
        self.cancel()
        return await self._issue()

    async def drain(self) -> None:
        """Wait until no timer or request started by trigger() is outstanding"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _fire_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        # Past this point the request is in flight and no longer cancellable by trigger()
        self._timer = None
        await self._issue()

    async def _issue(self) -> Optional[T]:
        self._sequence += 1
        sequence = self._sequence

        try:
            result = await self._fetch()
        except RemoteError as e:
            if sequence != self._sequence:
                logger.debug(f"{self.name}: ignoring failure of superseded request #{sequence}: {e}")
                return None
            logger.error(f"❌ {self.name} #{sequence} failed: {e}")
            if self._on_error is not None:
                self._on_error(e)
            return None

        if sequence != self._sequence:
            logger.debug(f"{self.name}: {StaleFetchDiscarded(sequence, self._sequence)}")
            return None

        outcome = self._apply(result)
        if inspect.isawaitable(outcome):
            await outcome
        return result
