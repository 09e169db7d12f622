"""
Tags component - Facet index built from fetched pages.
"""

from ._impl import TagAggregator, tag_sort_key

__all__ = [
    "TagAggregator",
    "tag_sort_key",
]
