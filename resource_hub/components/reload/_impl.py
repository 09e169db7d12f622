"""
ReloadCoordinator and ReloadScheduler - Single-flight reloads.

The coordinator recomputes the displayed data from one filter snapshot as
a single logical operation. The scheduler sits in front of it for input
that should be debounced (typed free text).

Key behaviors:
- At most one reload in flight; overlapping requests are dropped, not queued
- Busy flag is always cleared, on success and on failure
- Failures leave an empty page, a zero total and a status message
- Tag index lifetime is scoped to the filter lineage (category, subcategory)
- Scheduler: a request while PENDING restarts the timer, while IN_FLIGHT
  it is ignored
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from resource_hub.components.filters import FilterSnapshot
from resource_hub.components.query import QueryResolver, QueryResult
from resource_hub.components.tags import TagAggregator
from resource_hub.domain.entities import ViewerContext

from .models import DisplayState, RenderHook, SchedulerState

logger = logging.getLogger(__name__)

UNEXPECTED_FAILURE = "Something went wrong while loading resources."


class ReloadCoordinator:
    def __init__(
        self,
        resolver: QueryResolver,
        aggregator: TagAggregator | None = None,
        on_render: RenderHook | None = None,
    ) -> None:
        self._resolver = resolver
        self._aggregator = aggregator if aggregator is not None else TagAggregator()
        self._on_render = on_render
        self._busy = False
        self._lineage: tuple[str, str] | None = None
        self.display = DisplayState()
        self.dropped = 0

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def aggregator(self) -> TagAggregator:
        return self._aggregator

    async def reload(self, filters: FilterSnapshot, viewer: ViewerContext) -> bool:
        """
        Fetch and apply one page for the given snapshot.

        Returns False when dropped because another reload is in flight.
        """
        if self._busy:
            self.dropped += 1
            logger.debug("Reload dropped, another one is in flight")
            return False

        self._busy = True
        try:
            result = await self._resolver.resolve(filters, viewer)
        except Exception:
            logger.exception("Reload failed unexpectedly")
            result = QueryResult.failed(UNEXPECTED_FAILURE)
        finally:
            self._busy = False

        self._apply(filters, result)
        if self._on_render is not None:
            self._on_render(self.display)
        return True

    def _apply(self, filters: FilterSnapshot, result: QueryResult) -> None:
        if filters.lineage != self._lineage:
            self._aggregator.reset()
            self._lineage = filters.lineage

        if result.ok:
            self._aggregator.absorb(result.records)
        else:
            logger.warning("Showing empty page: %s", result.error)

        self.display = DisplayState(
            filters=filters,
            records=result.records,
            total=result.total,
            tags=tuple(self._aggregator.snapshot()),
            status=result.error or "",
            degraded=result.degraded,
            generation=self.display.generation + 1,
        )


class ReloadScheduler:
    """Debounce in front of an async action, as an explicit state machine."""

    def __init__(self, action: Callable[[], Awaitable[object]], delay_seconds: float) -> None:
        self._action = action
        self._delay = delay_seconds
        self._task: asyncio.Task[None] | None = None
        self.state = SchedulerState.IDLE
        self.ignored = 0

    def request(self) -> bool:
        """
        Ask for a reload after the debounce delay.

        Must be called from inside the running event loop.
        Returns False if ignored because a reload is in flight.
        """
        if self.state is SchedulerState.IN_FLIGHT:
            self.ignored += 1
            return False

        if self.state is SchedulerState.PENDING and self._task is not None:
            self._task.cancel()

        self.state = SchedulerState.PENDING
        self._task = asyncio.get_running_loop().create_task(self._fire_after_delay())
        return True

    async def flush(self) -> None:
        """Run a pending request now instead of waiting out the delay."""
        if self.state is not SchedulerState.PENDING:
            return
        if self._task is not None:
            self._task.cancel()
        await self._run()

    async def wait_idle(self) -> None:
        while self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)

    async def _fire_after_delay(self) -> None:
        await asyncio.sleep(self._delay)
        await self._run()

    async def _run(self) -> None:
        self.state = SchedulerState.IN_FLIGHT
        try:
            await self._action()
        finally:
            self.state = SchedulerState.IDLE
