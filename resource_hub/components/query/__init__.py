"""
Query component - Remote query building, fallback and local re-filtering.
"""

from resource_hub.ports.records import RecordQuery, RecordStoreError, RecordStorePort

from ._impl import (
    QueryResolver,
    build_query,
    describe_error,
    matches_text,
    record_sort_key,
    should_degrade,
    sort_records,
)
from .models import FallbackStrategy, QueryResult

__all__ = [
    # Entry points
    "QueryResolver",
    # Pure functions
    "build_query",
    "describe_error",
    "matches_text",
    "record_sort_key",
    "should_degrade",
    "sort_records",
    # Models
    "FallbackStrategy",
    "QueryResult",
    # Ports
    "RecordQuery",
    "RecordStoreError",
    "RecordStorePort",
]
