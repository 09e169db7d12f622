"""
RecordService - Record submission and removal.

Validates writes before any I/O and persists through the record store.

Key behaviors:
- Title required, URL must match ^https?://, category from the taxonomy
- Subcategory upper-cased only for course-code categories
- Tags trimmed and de-duplicated
- Submitting needs a session; deleting needs privilege
- Privileged submissions are approved immediately
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID, uuid4

from resource_hub.domain.entities import URL_PATTERN, Record, ViewerContext
from resource_hub.domain.policy import VisibilityPolicy
from resource_hub.domain.taxonomy import Taxonomy
from resource_hub.ports.records import RecordStoreError, RecordStorePort

from .models import RecordValidationError

logger = logging.getLogger(__name__)

TITLE_MAX = 200

# --- Validation Functions ---


def validate_record_data(
    title: str,
    url: str,
    category: str,
    taxonomy: Taxonomy,
) -> list[RecordValidationError]:
    """Validate record data."""
    errors: list[RecordValidationError] = []

    if not title or not title.strip():
        errors.append(
            RecordValidationError(
                code="title_required",
                message="Title is required",
                field="title",
            )
        )
    elif len(title.strip()) > TITLE_MAX:
        errors.append(
            RecordValidationError(
                code="title_too_long",
                message=f"Title must be {TITLE_MAX} characters or less",
                field="title",
            )
        )

    if not url or not url.strip():
        errors.append(
            RecordValidationError(
                code="url_required",
                message="URL is required",
                field="url",
            )
        )
    elif not URL_PATTERN.match(url.strip()):
        errors.append(
            RecordValidationError(
                code="url_invalid_scheme",
                message="URL must start with http:// or https://",
                field="url",
            )
        )

    if not category:
        errors.append(
            RecordValidationError(
                code="category_required",
                message="Category is required",
                field="category",
            )
        )
    elif not taxonomy.is_assignable(category):
        errors.append(
            RecordValidationError(
                code="category_unknown",
                message=f"Unknown category '{category}'",
                field="category",
            )
        )

    return errors


def normalize_subcategory(subcategory: str, category: str, taxonomy: Taxonomy) -> str:
    value = (subcategory or "").strip()
    if taxonomy.uses_course_codes(category):
        return value.upper()
    return value


def parse_tags(tags: str | Sequence[str]) -> tuple[str, ...]:
    """Split, trim and de-duplicate tags, keeping first-seen order."""
    raw = tags.split(",") if isinstance(tags, str) else list(tags)
    seen: dict[str, None] = {}
    for tag in raw:
        cleaned = str(tag).strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


# --- Record Service ---


class RecordService:
    """Write side of the directory."""

    def __init__(
        self,
        store: RecordStorePort,
        taxonomy: Taxonomy,
        policy: VisibilityPolicy | None = None,
    ) -> None:
        self._store = store
        self._taxonomy = taxonomy
        self._policy = policy or VisibilityPolicy()

    async def create(
        self,
        viewer: ViewerContext,
        title: str,
        url: str,
        category: str,
        subcategory: str = "",
        tags: str | Sequence[str] = (),
        description: str = "",
    ) -> tuple[Record | None, list[RecordValidationError]]:
        """
        Submit a new record.

        Returns:
            Tuple of (record, errors). Record is None if the write was rejected.
        """
        if not self._policy.can_submit(viewer):
            return None, [
                RecordValidationError(code="sign_in_required", message="Please sign in first.")
            ]

        errors = validate_record_data(title, url, category, self._taxonomy)
        if errors:
            return None, errors

        record = Record(
            id=uuid4(),
            owner_id=viewer.user_id,
            title=title.strip(),
            url=url.strip(),
            category=category,
            subcategory=normalize_subcategory(subcategory, category, self._taxonomy),
            tags=parse_tags(tags),
            description=(description or "").strip(),
            approved=self._policy.auto_approve(viewer),
        )

        try:
            saved = await self._store.insert(record)
        except RecordStoreError as e:
            logger.warning("Record insert failed: %s", e.message)
            return None, [RecordValidationError(code="store_error", message=e.message)]

        logger.info("Record %s submitted by %s", saved.id, viewer.user_id)
        return saved, []

    async def delete(
        self, viewer: ViewerContext, record_id: UUID
    ) -> tuple[bool, list[RecordValidationError]]:
        if not self._policy.can_delete(viewer):
            return False, [
                RecordValidationError(
                    code="forbidden", message="Only administrators can delete resources."
                )
            ]

        try:
            deleted = await self._store.delete(record_id)
        except RecordStoreError as e:
            logger.warning("Record delete failed: %s", e.message)
            return False, [RecordValidationError(code="store_error", message=e.message)]

        if not deleted:
            return False, [
                RecordValidationError(
                    code="record_not_found",
                    message=f"Record with ID {record_id} not found",
                )
            ]

        logger.info("Record %s deleted by %s", record_id, viewer.user_id)
        return True, []
