"""
QueryResolver - Filter state to remote query, with a degraded fallback.

Turns a filter snapshot plus the viewer context into one page of records
and the exact total count.

Key behaviors:
- Approval predicate unless the viewer is privileged
- Fixed order: votes descending, then title ascending (case-folded)
- Offset/limit window from page and page size
- Hard timeout on the remote call
- On timeout or free-text rejection: retry once without the text clause,
  then re-apply the text locally to the returned page only (the total stays
  the pre-filter count)
- Any other store failure: empty page, zero total, error message
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from resource_hub.components.filters import FilterSnapshot
from resource_hub.domain.entities import Record, ViewerContext
from resource_hub.domain.policy import VisibilityPolicy
from resource_hub.domain.taxonomy import ALL_CATEGORY
from resource_hub.ports.records import RecordQuery, RecordStoreError, RecordStorePort

from .models import FallbackStrategy, QueryResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

# Store failures the resolver turns into a result instead of raising
RECOVERABLE_ERRORS = (RecordStoreError, TimeoutError, OSError)


# --- Pure Functions ---


def build_query(filters: FilterSnapshot, viewer: ViewerContext) -> RecordQuery:
    return RecordQuery(
        approved_only=not viewer.is_privileged,
        category=None if filters.category in ("", ALL_CATEGORY) else filters.category,
        subcategory=filters.subcategory or None,
        tag=filters.tag or None,
        text=filters.query.strip() or None,
        offset=filters.offset,
        limit=filters.page_size,
    )


def record_sort_key(record: Record) -> tuple[int, str, str]:
    return (-record.votes, record.title.casefold(), record.title)


def sort_records(records: Iterable[Record]) -> list[Record]:
    return sorted(records, key=record_sort_key)


def matches_text(record: Record, text: str) -> bool:
    """Case-insensitive substring match over title, description, URL and tags."""
    needle = text.casefold()
    if not needle:
        return True
    if needle in record.title.casefold():
        return True
    if needle in record.description.casefold():
        return True
    if needle in record.url.casefold():
        return True
    return any(needle in tag.casefold() for tag in record.tags)


def should_degrade(error: BaseException) -> bool:
    """True when the failure warrants one retry without the free-text clause."""
    if isinstance(error, TimeoutError):
        return True
    if isinstance(error, RecordStoreError):
        return error.kind in ("timeout", "text_rejected")
    return False


def describe_error(error: BaseException) -> str:
    if isinstance(error, TimeoutError):
        return "The directory did not respond in time."
    if isinstance(error, RecordStoreError):
        if error.kind == "unauthorized":
            return f"Not allowed to read the directory: {error.message}"
        return f"Could not load resources: {error.message}"
    return f"Could not load resources: {error}"


# --- Resolver ---


class QueryResolver:
    """Runs the primary query and, when allowed, the degraded one."""

    def __init__(
        self,
        store: RecordStorePort,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        policy: VisibilityPolicy | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout_seconds
        self._policy = policy or VisibilityPolicy()

    async def resolve(self, filters: FilterSnapshot, viewer: ViewerContext) -> QueryResult:
        strategy = FallbackStrategy.for_query(build_query(filters, viewer))

        try:
            records, total = await self._fetch(strategy.primary)
        except RECOVERABLE_ERRORS as e:
            if not should_degrade(e):
                logger.warning("Record query failed: %s", describe_error(e))
                return QueryResult.failed(describe_error(e))
            logger.info("Primary query failed (%s), retrying without free text", type(e).__name__)
            return await self._resolve_degraded(strategy, viewer)

        return QueryResult(records=self._visible(records, viewer), total=total)

    async def _resolve_degraded(
        self, strategy: FallbackStrategy, viewer: ViewerContext
    ) -> QueryResult:
        try:
            records, total = await self._fetch(strategy.degraded)
        except RECOVERABLE_ERRORS as e:
            logger.warning("Degraded query failed: %s", describe_error(e))
            return QueryResult.failed(describe_error(e))

        text = strategy.local_text
        if text:
            records = [r for r in records if matches_text(r, text)]

        # Total is the count before local filtering; only this page is re-filtered.
        return QueryResult(records=self._visible(records, viewer), total=total, degraded=True)

    async def _fetch(self, query: RecordQuery) -> tuple[list[Record], int]:
        return await asyncio.wait_for(self._store.query(query), timeout=self._timeout)

    def _visible(self, records: Iterable[Record], viewer: ViewerContext) -> tuple[Record, ...]:
        return tuple(sort_records(r for r in records if self._policy.can_view(viewer, r)))
