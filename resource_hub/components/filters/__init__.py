"""
Filters component - Search, filter and page selection state.
"""

from .models import DEFAULT_PAGE_SIZE, FilterSnapshot, FilterState

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FilterSnapshot",
    "FilterState",
]
