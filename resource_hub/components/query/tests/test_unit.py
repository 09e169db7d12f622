"""
Query component unit tests.

Tests for query building, ordering, the degraded fallback and error results.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from resource_hub.adapters.memory import InMemoryRecordStore
from resource_hub.components.filters import FilterSnapshot
from resource_hub.components.query import (
    FallbackStrategy,
    QueryResolver,
    RecordQuery,
    RecordStoreError,
    build_query,
    matches_text,
    should_degrade,
)
from resource_hub.domain.entities import Record, Session, ViewerContext

ANON = ViewerContext()
ADMIN = ViewerContext(
    session=Session(user_id=uuid4(), email="admin@example.com"), is_privileged=True
)


def _record(title: str, votes: int = 0, **kw) -> Record:
    kw.setdefault("url", f"https://example.com/{title.lower().replace(' ', '-')}")
    kw.setdefault("category", "math")
    kw.setdefault("approved", True)
    return Record(title=title, votes=votes, created_at=datetime(2026, 1, 1, tzinfo=UTC), **kw)


# --- Fault injecting store ---


class FlakyStore(InMemoryRecordStore):
    """Raises queued errors, or stalls on text queries, before serving."""

    def __init__(
        self,
        records: list[Record],
        errors: list[BaseException] | None = None,
        stall_on_text: bool = False,
    ) -> None:
        super().__init__(records)
        self.errors = list(errors or [])
        self.stall_on_text = stall_on_text

    async def query(self, query: RecordQuery) -> tuple[list[Record], int]:
        if self.errors:
            self.queries.append(query)
            raise self.errors.pop(0)
        if self.stall_on_text and query.text:
            self.queries.append(query)
            await asyncio.sleep(5)
        return await super().query(query)


@pytest.fixture
def records() -> list[Record]:
    return [
        _record("Linear Algebra Notes", votes=5, description="matrices", tags=("notes",)),
        _record("Calculus Videos", votes=9, tags=("video",)),
        _record("Algebra Basics", votes=5, tags=("worksheet",)),
        _record("geometry proofs", votes=1, description="Intro to ALGEBRAIC proofs"),
        _record("Hidden Draft", votes=20, approved=False),
        _record("Physics Labs", votes=3, category="science", subcategory="Physics"),
        _record("Tagged Only", votes=2, tags=("algebra-prep",)),
    ]


# --- build_query ---


class TestBuildQuery:
    def test_defaults(self) -> None:
        q = build_query(FilterSnapshot(), ANON)
        assert q == RecordQuery(approved_only=True, offset=0, limit=9)

    def test_privileged_drops_approval(self) -> None:
        assert build_query(FilterSnapshot(), ADMIN).approved_only is False

    def test_all_predicates(self) -> None:
        snap = FilterSnapshot(
            query=" algebra ", category="math", subcategory="Algebra", tag="notes", page=3
        )
        q = build_query(snap, ANON)
        assert q.category == "math"
        assert q.subcategory == "Algebra"
        assert q.tag == "notes"
        assert q.text == "algebra"
        assert (q.offset, q.limit) == (18, 9)

    def test_degraded_keeps_everything_but_text(self) -> None:
        q = build_query(FilterSnapshot(query="x", category="math", page=2), ANON)
        strategy = FallbackStrategy.for_query(q)
        assert strategy.degraded.text is None
        assert strategy.degraded.category == "math"
        assert strategy.degraded.offset == 9
        assert strategy.local_text == "x"


# --- should_degrade ---


class TestShouldDegrade:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (TimeoutError(), True),
            (asyncio.TimeoutError(), True),
            (RecordStoreError("timeout", "slow"), True),
            (RecordStoreError("text_rejected", "bad or clause"), True),
            (RecordStoreError("unauthorized", "jwt expired"), False),
            (RecordStoreError("unavailable", "down"), False),
            (ConnectionError("reset"), False),
        ],
    )
    def test_policy(self, error: BaseException, expected: bool) -> None:
        assert should_degrade(error) is expected


class TestMatchesText:
    def test_fields(self) -> None:
        r = _record("Title", description="Some Desc", tags=("Tagged",))
        assert matches_text(r, "title")
        assert matches_text(r, "desc")
        assert matches_text(r, "EXAMPLE.COM")
        assert matches_text(r, "tagg")
        assert not matches_text(r, "nothing")


# --- Resolver ---


class TestResolve:
    @pytest.mark.asyncio
    async def test_sort_order(self, records: list[Record]) -> None:
        resolver = QueryResolver(InMemoryRecordStore(records))
        result = await resolver.resolve(FilterSnapshot(page_size=20), ADMIN)
        pairs = [(r.votes, r.title.casefold()) for r in result.records]
        for (v1, t1), (v2, t2) in zip(pairs, pairs[1:], strict=False):
            assert v1 >= v2
            if v1 == v2:
                assert t1 <= t2

    @pytest.mark.asyncio
    async def test_vote_ties_broken_by_title(self, records: list[Record]) -> None:
        resolver = QueryResolver(InMemoryRecordStore(records))
        result = await resolver.resolve(FilterSnapshot(), ANON)
        titles = [r.title for r in result.records]
        assert titles.index("Algebra Basics") < titles.index("Linear Algebra Notes")

    @pytest.mark.asyncio
    async def test_total_is_exact_not_page(self, records: list[Record]) -> None:
        resolver = QueryResolver(InMemoryRecordStore(records))
        result = await resolver.resolve(FilterSnapshot(page_size=2), ANON)
        assert len(result.records) == 2
        assert result.total == 6
        assert result.ok
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_non_privileged_never_sees_unapproved(self, records: list[Record]) -> None:
        resolver = QueryResolver(InMemoryRecordStore(records))
        combos = [
            FilterSnapshot(page_size=50),
            FilterSnapshot(query="hidden", page_size=50),
            FilterSnapshot(category="math", page_size=50),
        ]
        for snap in combos:
            result = await resolver.resolve(snap, ANON)
            assert all(r.approved for r in result.records)

    @pytest.mark.asyncio
    async def test_privileged_sees_unapproved(self, records: list[Record]) -> None:
        resolver = QueryResolver(InMemoryRecordStore(records))
        result = await resolver.resolve(FilterSnapshot(query="hidden"), ADMIN)
        assert [r.title for r in result.records] == ["Hidden Draft"]

    @pytest.mark.asyncio
    async def test_unapproved_filtered_even_if_store_leaks(self, records: list[Record]) -> None:
        class LeakyStore(InMemoryRecordStore):
            async def query(self, query: RecordQuery) -> tuple[list[Record], int]:
                return list(self._records.values()), len(self._records)

        resolver = QueryResolver(LeakyStore(records))
        result = await resolver.resolve(FilterSnapshot(), ANON)
        assert all(r.approved for r in result.records)


class TestFallback:
    @pytest.mark.asyncio
    async def test_timeout_falls_back_and_filters_locally(self, records: list[Record]) -> None:
        store = FlakyStore(records, stall_on_text=True)
        resolver = QueryResolver(store, timeout_seconds=0.05)

        result = await resolver.resolve(FilterSnapshot(query="algebra", page_size=50), ANON)

        assert result.degraded is True
        assert result.ok
        assert result.records
        for r in result.records:
            assert (
                "algebra" in r.title.lower()
                or "algebra" in r.description.lower()
                or "algebra" in r.url.lower()
                or any("algebra" in t.lower() for t in r.tags)
            )
        # Count reflects the unfiltered-by-text total
        assert result.total == 6
        assert store.queries[0].text == "algebra"
        assert store.queries[1].text is None

    @pytest.mark.asyncio
    async def test_text_rejection_falls_back(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[RecordStoreError("text_rejected", "or() parse")])
        resolver = QueryResolver(store)
        result = await resolver.resolve(FilterSnapshot(query="calculus"), ANON)
        assert result.degraded
        assert [r.title for r in result.records] == ["Calculus Videos"]

    @pytest.mark.asyncio
    async def test_fallback_covers_tags_locally(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[TimeoutError()])
        resolver = QueryResolver(store)
        result = await resolver.resolve(FilterSnapshot(query="prep"), ANON)
        assert [r.title for r in result.records] == ["Tagged Only"]

    @pytest.mark.asyncio
    async def test_retry_only_once(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[TimeoutError(), TimeoutError(), TimeoutError()])
        resolver = QueryResolver(store)
        result = await resolver.resolve(FilterSnapshot(query="x"), ANON)
        assert not result.ok
        assert result.records == ()
        assert result.total == 0
        assert len(store.queries) == 2

    @pytest.mark.asyncio
    async def test_unauthorized_not_retried(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[RecordStoreError("unauthorized", "jwt expired")])
        resolver = QueryResolver(store)
        result = await resolver.resolve(FilterSnapshot(query="x"), ANON)
        assert result.error is not None
        assert "jwt expired" in result.error
        assert result.total == 0
        assert len(store.queries) == 1

    @pytest.mark.asyncio
    async def test_network_error_not_retried(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[ConnectionResetError("reset")])
        resolver = QueryResolver(store)
        result = await resolver.resolve(FilterSnapshot(), ANON)
        assert not result.ok
        assert len(store.queries) == 1

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self, records: list[Record]) -> None:
        store = FlakyStore(records, errors=[KeyError("bug")])
        resolver = QueryResolver(store)
        with pytest.raises(KeyError):
            await resolver.resolve(FilterSnapshot(), ANON)
