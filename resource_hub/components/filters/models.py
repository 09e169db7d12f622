"""
Filters component - Filter state.

Single source of truth for the user's current search, filter and page
selection. Owned and mutated by the UI event layer, read by the query
resolver through immutable snapshots.

Key behaviors:
- Every mutator except set_page resets page to 1
- set_category also resets subcategory
- Free text is trimmed; no other validation
"""

from __future__ import annotations

from dataclasses import dataclass

from resource_hub.domain.taxonomy import ALL_CATEGORY

DEFAULT_PAGE_SIZE = 9


@dataclass(frozen=True)
class FilterSnapshot:
    """Immutable copy of the filter state at one instant."""

    query: str = ""
    category: str = ALL_CATEGORY
    subcategory: str = ""
    tag: str = ""
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def lineage(self) -> tuple[str, str]:
        return (self.category, self.subcategory)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class FilterState:
    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.query = ""
        self.category = ALL_CATEGORY
        self.subcategory = ""
        self.tag = ""
        self.page = 1
        self.page_size = page_size

    def set_query(self, text: str) -> None:
        self.query = (text or "").strip()
        self.page = 1

    def set_category(self, category_id: str) -> None:
        self.category = category_id or ALL_CATEGORY
        self.subcategory = ""
        self.page = 1

    def set_subcategory(self, code: str) -> None:
        self.subcategory = code or ""
        self.page = 1

    def set_tag(self, tag: str) -> None:
        self.tag = tag or ""
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, page)

    def reset(self) -> None:
        """Back to the boot defaults, keeping the page size."""
        self.query = ""
        self.category = ALL_CATEGORY
        self.subcategory = ""
        self.tag = ""
        self.page = 1

    def snapshot(self) -> FilterSnapshot:
        return FilterSnapshot(
            query=self.query,
            category=self.category,
            subcategory=self.subcategory,
            tag=self.tag,
            page=self.page,
            page_size=self.page_size,
        )

    def __repr__(self) -> str:
        return f"FilterState({self.snapshot()!r})"
