"""
Records component - Record submission and removal.

Shell Layer - converts service results to operation outputs.
"""

from __future__ import annotations

from resource_hub.domain.entities import ViewerContext

from ._impl import RecordService
from .models import CreateRecordInput, DeleteRecordInput, RecordOperationOutput

# --- Shell Layer Functions ---


async def run_create(
    input_data: CreateRecordInput,
    viewer: ViewerContext,
    service: RecordService,
) -> RecordOperationOutput:
    """Submit a new record."""
    record, errors = await service.create(
        viewer,
        title=input_data.title,
        url=input_data.url,
        category=input_data.category,
        subcategory=input_data.subcategory,
        tags=input_data.tags,
        description=input_data.description,
    )

    return RecordOperationOutput(
        record=record,
        errors=tuple(errors),
        success=record is not None,
    )


async def run_delete(
    input_data: DeleteRecordInput,
    viewer: ViewerContext,
    service: RecordService,
) -> RecordOperationOutput:
    """Delete a record."""
    success, errors = await service.delete(viewer, input_data.record_id)

    return RecordOperationOutput(
        record=None,
        errors=tuple(errors),
        success=success,
    )
