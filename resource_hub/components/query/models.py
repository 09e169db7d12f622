"""
Query component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from resource_hub.domain.entities import Record
from resource_hub.ports.records import RecordQuery


@dataclass(frozen=True)
class FallbackStrategy:
    """Primary query plus the reduced-predicate query tried once on failure."""

    primary: RecordQuery
    degraded: RecordQuery

    @property
    def local_text(self) -> str | None:
        """Free text the degraded path must re-apply locally."""
        return self.primary.text

    @classmethod
    def for_query(cls, primary: RecordQuery) -> FallbackStrategy:
        return cls(primary=primary, degraded=primary.without_text())


@dataclass(frozen=True)
class QueryResult:
    """One page of records plus the exact total for the filter."""

    records: tuple[Record, ...] = ()
    total: int = 0
    degraded: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, message: str) -> QueryResult:
        return cls(records=(), total=0, degraded=False, error=message)
