"""
Record store port.

The remote query surface: filter predicates, fixed sort, offset/limit
window and an exact count matching the predicates.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Protocol
from uuid import UUID

from resource_hub.domain.entities import Record

StoreErrorKind = Literal["timeout", "text_rejected", "unauthorized", "unavailable"]


class RecordStoreError(Exception):
    """Remote-side failure of a record store call."""

    def __init__(self, kind: StoreErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class RecordQuery:
    """
    Remote query description.

    A predicate set to None is unconstrained. Sort order is fixed:
    votes descending, then title ascending.
    """

    approved_only: bool = True
    category: str | None = None
    subcategory: str | None = None
    tag: str | None = None
    text: str | None = None
    offset: int = 0
    limit: int = 9

    def without_text(self) -> RecordQuery:
        return replace(self, text=None)


class RecordStorePort(Protocol):
    async def query(self, query: RecordQuery) -> tuple[list[Record], int]:
        """Return one window of records and the exact total matching the predicates."""
        ...

    async def insert(self, record: Record) -> Record:
        ...

    async def delete(self, record_id: UUID) -> bool:
        """Delete a record. Returns False if it did not exist."""
        ...
