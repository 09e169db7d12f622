"""In-memory record store and profile repo adapters.

These implement RecordStorePort and ProfileRepoPort without I/O.
Suitable for single-process demos and tests; production uses SQLite.
"""

from __future__ import annotations

from uuid import UUID

from resource_hub.domain.entities import Profile, Record
from resource_hub.ports.records import RecordQuery


def record_matches(record: Record, query: RecordQuery) -> bool:
    """Evaluate the remote predicate set against one record."""
    if query.approved_only and not record.approved:
        return False
    if query.category is not None and record.category != query.category:
        return False
    if query.subcategory is not None and record.subcategory != query.subcategory:
        return False
    if query.tag is not None and query.tag not in record.tags:
        return False
    if query.text:
        needle = query.text.casefold()
        haystacks = (record.title, record.description, record.url)
        if not any(needle in h.casefold() for h in haystacks):
            return False
    return True


class InMemoryRecordStore:
    """Record store kept in a dict - suitable for single-process deployments."""

    def __init__(self, records: list[Record] | None = None) -> None:
        self._records: dict[UUID, Record] = {}
        for record in records or []:
            self._records[record.id] = record
        self.queries: list[RecordQuery] = []

    async def query(self, query: RecordQuery) -> tuple[list[Record], int]:
        self.queries.append(query)
        matched = [r for r in self._records.values() if record_matches(r, query)]
        matched.sort(key=lambda r: (-r.votes, r.title.casefold(), r.title))
        window = matched[query.offset : query.offset + query.limit]
        return window, len(matched)

    async def insert(self, record: Record) -> Record:
        self._records[record.id] = record
        return record

    async def delete(self, record_id: UUID) -> bool:
        return self._records.pop(record_id, None) is not None

    def all(self) -> list[Record]:
        return list(self._records.values())


class InMemoryProfileRepo:
    def __init__(self) -> None:
        self._profiles: dict[UUID, Profile] = {}

    async def get(self, user_id: UUID) -> Profile | None:
        return self._profiles.get(user_id)

    async def save(self, profile: Profile) -> Profile:
        self._profiles[profile.id] = profile
        return profile
