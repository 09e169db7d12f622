"""
Records component - Record submission and removal.
"""

from ._impl import RecordService, normalize_subcategory, parse_tags, validate_record_data
from .component import run_create, run_delete
from .models import (
    CreateRecordInput,
    DeleteRecordInput,
    RecordOperationOutput,
    RecordValidationError,
)

__all__ = [
    # Entry points
    "run_create",
    "run_delete",
    # Input models
    "CreateRecordInput",
    "DeleteRecordInput",
    # Output models
    "RecordOperationOutput",
    "RecordValidationError",
    # Service
    "RecordService",
    "normalize_subcategory",
    "parse_tags",
    "validate_record_data",
]
