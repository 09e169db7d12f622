"""
Records component - Data models.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from resource_hub.domain.entities import Record

# --- Validation Errors ---


@dataclass(frozen=True)
class RecordValidationError:
    """Record validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreateRecordInput:
    """Input for submitting a record. Tags may be a comma separated string."""

    title: str
    url: str
    category: str
    subcategory: str = ""
    tags: str | Sequence[str] = ()
    description: str = ""


@dataclass(frozen=True)
class DeleteRecordInput:
    """Input for deleting a record."""

    record_id: UUID


# --- Output Models ---


@dataclass(frozen=True)
class RecordOperationOutput:
    """Output from a write operation."""

    record: Record | None
    errors: tuple[RecordValidationError, ...]
    success: bool
