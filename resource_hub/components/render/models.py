"""
Render component - Data models.

Everything here is display-safe and derived; nothing references live state.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class Option:
    """One entry of a select control."""

    label: str
    value: str
    selected: bool = False


@dataclass(frozen=True)
class RecordCard:
    id: UUID
    title: str
    url: str
    category_label: str
    description: str
    tags: tuple[str, ...]
    votes: int
    is_new: bool
    can_delete: bool
    approved: bool


@dataclass(frozen=True)
class Pager:
    page: int
    total_pages: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def visible(self) -> bool:
        return self.total_pages > 1

    @property
    def label(self) -> str:
        return f"Page {self.page} / {self.total_pages}"


@dataclass(frozen=True)
class RenderPlan:
    cards: tuple[RecordCard, ...]
    category_options: tuple[Option, ...]
    subcategory_options: tuple[Option, ...]
    tag_options: tuple[Option, ...]
    pager: Pager
    count_text: str
    status_text: str = ""
    degraded_notice: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.cards
