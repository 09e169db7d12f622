"""
BrowserSession - The UI event layer.

Owns the filter state and the viewer context, and wires user events to the
reload pipeline. Presentation code (a web page, a terminal UI, the CLI)
calls these handlers and reads `plan` after every render.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from uuid import UUID

from resource_hub.adapters.clock import SystemClock
from resource_hub.components.filters import FilterState
from resource_hub.components.query import QueryResolver
from resource_hub.components.records import (
    CreateRecordInput,
    DeleteRecordInput,
    RecordOperationOutput,
    RecordService,
    run_create,
    run_delete,
)
from resource_hub.components.reload import DisplayState, ReloadCoordinator, ReloadScheduler
from resource_hub.components.render import RenderPlan, run_render
from resource_hub.components.tags import TagAggregator
from resource_hub.components.viewer import PrivilegeLookup, ensure_profile, get_session
from resource_hub.domain.entities import ANONYMOUS, Session, ViewerContext
from resource_hub.ports.auth import ProfileRepoPort, SessionProviderPort
from resource_hub.ports.clock import ClockPort
from resource_hub.ports.records import RecordStorePort
from resource_hub.rules.models import Rules

logger = logging.getLogger(__name__)


class BrowserSession:
    def __init__(
        self,
        store: RecordStorePort,
        profiles: ProfileRepoPort,
        sessions: SessionProviderPort,
        rules: Rules | None = None,
        clock: ClockPort | None = None,
        on_plan: Callable[[RenderPlan], None] | None = None,
    ) -> None:
        rules = rules or Rules()
        self.rules = rules
        self.taxonomy = rules.taxonomy.build()
        self.filters = FilterState(page_size=rules.browser.page_size)
        self.viewer: ViewerContext = ANONYMOUS

        self._clock = clock or SystemClock()
        self._on_plan = on_plan
        self.sessions = sessions
        self._profiles = profiles
        self._lookup = PrivilegeLookup(profiles, timeout_seconds=rules.timeouts.session_seconds)
        self._new_within = timedelta(days=rules.browser.new_badge_days)

        self.records = RecordService(store, self.taxonomy)
        self.coordinator = ReloadCoordinator(
            QueryResolver(store, timeout_seconds=rules.timeouts.query_seconds),
            TagAggregator(),
            on_render=self._render,
        )
        self.scheduler = ReloadScheduler(
            self.reload, delay_seconds=rules.browser.debounce_ms / 1000
        )
        self.plan: RenderPlan = self._plan_for(self.coordinator.display)

        sessions.on_session_change(self.on_session_change)

    # --- Lifecycle ---

    async def boot(self) -> RenderPlan:
        session = await get_session(self.sessions, self.rules.timeouts.session_seconds)
        await self._set_session(session)
        await self.reload()
        return self.plan

    async def reload(self) -> bool:
        return await self.coordinator.reload(self.filters.snapshot(), self.viewer)

    async def on_session_change(self, session: Session | None) -> None:
        await self._set_session(session)
        await self.reload()

    async def refresh_viewer(self) -> ViewerContext:
        """Recompute privilege for the current session, e.g. after a role change."""
        self.viewer = await self._lookup.viewer_for(self.viewer.session)
        return self.viewer

    # --- Filter events ---

    def type_query(self, text: str) -> None:
        """Free text is debounced; call `scheduler.flush()` to skip the wait."""
        self.filters.set_query(text)
        self.scheduler.request()

    async def select_category(self, category_id: str) -> bool:
        self.filters.set_category(category_id)
        return await self.reload()

    async def select_subcategory(self, code: str) -> bool:
        self.filters.set_subcategory(code)
        return await self.reload()

    async def select_tag(self, tag: str) -> bool:
        self.filters.set_tag(tag)
        return await self.reload()

    async def go_to_page(self, page: int) -> bool:
        self.filters.set_page(min(max(1, page), self.plan.pager.total_pages))
        return await self.reload()

    async def next_page(self) -> bool:
        return await self.go_to_page(self.filters.page + 1)

    async def prev_page(self) -> bool:
        return await self.go_to_page(self.filters.page - 1)

    # --- Writes ---

    async def submit(self, input_data: CreateRecordInput) -> RecordOperationOutput:
        result = await run_create(input_data, self.viewer, self.records)
        if result.success:
            self.filters.set_page(1)
            await self.reload()
        return result

    async def delete(self, record_id: UUID) -> RecordOperationOutput:
        result = await run_delete(DeleteRecordInput(record_id=record_id), self.viewer, self.records)
        if result.success:
            self.filters.set_page(1)
            await self.reload()
        return result

    # --- Internals ---

    async def _set_session(self, session: Session | None) -> None:
        await ensure_profile(session, self._profiles)
        self.viewer = await self._lookup.viewer_for(session)
        logger.info(
            "Viewer is %s (privileged=%s)",
            session.email if session else "anonymous",
            self.viewer.is_privileged,
        )

    def _render(self, display: DisplayState) -> None:
        self.plan = self._plan_for(display)
        if self._on_plan is not None:
            self._on_plan(self.plan)

    def _plan_for(self, display: DisplayState) -> RenderPlan:
        # Controls follow the snapshot that produced the records, not the live filters
        filters = display.filters or self.filters.snapshot()
        return run_render(
            display,
            filters,
            self.viewer,
            self.taxonomy,
            self._clock.now_utc(),
            new_within=self._new_within,
        )
