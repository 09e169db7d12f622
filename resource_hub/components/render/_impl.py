"""
Result renderer - Pure projection from fetched data to a render plan.

Key behaviors:
- Same inputs always produce the same plan (the current time is an input)
- Subcategory options come from the taxonomy, not from fetched records
- Total pages never drops below 1
- Delete affordance offered only to privileged viewers
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from resource_hub.components.filters import FilterSnapshot
from resource_hub.domain.entities import Record
from resource_hub.domain.taxonomy import Taxonomy

from .models import Option, Pager, RecordCard, RenderPlan

NEW_WITHIN = timedelta(days=7)

ANY_SUBCATEGORY = "Any subcategory"
ANY_TAG = "Any tag"
DEGRADED_NOTICE = "Search is running in reduced mode; matches are limited to this page."


def total_pages(total_count: int, page_size: int) -> int:
    if page_size < 1:
        return 1
    return max(1, math.ceil(total_count / page_size))


def count_text(total_count: int) -> str:
    plural = "" if total_count == 1 else "s"
    return f"{total_count} result{plural} • sorted by votes"


def category_label(record: Record, taxonomy: Taxonomy) -> str:
    label = taxonomy.label_of(record.category)
    if record.subcategory:
        return f"{label} • {record.subcategory}"
    return label


def is_new(record: Record, now: datetime, within: timedelta = NEW_WITHIN) -> bool:
    created = record.created_at
    # Naive timestamps are treated as already being in the clock's zone
    if created.tzinfo is None and now.tzinfo is not None:
        created = created.replace(tzinfo=now.tzinfo)
    elif created.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=created.tzinfo)
    age = now - created
    return timedelta(0) <= age <= within


def render(
    records: Sequence[Record],
    total_count: int,
    tags: Sequence[str],
    filters: FilterSnapshot,
    is_privileged: bool,
    taxonomy: Taxonomy,
    now: datetime,
    status: str = "",
    degraded: bool = False,
    new_within: timedelta = NEW_WITHIN,
) -> RenderPlan:
    cards = tuple(
        RecordCard(
            id=r.id,
            title=r.title,
            url=r.url,
            category_label=category_label(r, taxonomy),
            description=r.description,
            tags=r.tags,
            votes=r.votes,
            is_new=is_new(r, now, new_within),
            can_delete=is_privileged,
            approved=r.approved,
        )
        for r in records
    )

    category_options = tuple(
        Option(label=c.name, value=c.id, selected=c.id == filters.category)
        for c in taxonomy.categories
    )

    subcategory_options = (
        Option(label=ANY_SUBCATEGORY, value="", selected=not filters.subcategory),
    ) + tuple(
        Option(label=s, value=s, selected=s == filters.subcategory)
        for s in taxonomy.subcategories_of(filters.category)
    )

    tag_options = (Option(label=ANY_TAG, value="", selected=not filters.tag),) + tuple(
        Option(label=f"#{t}", value=t, selected=t == filters.tag) for t in tags
    )

    return RenderPlan(
        cards=cards,
        category_options=category_options,
        subcategory_options=subcategory_options,
        tag_options=tag_options,
        pager=Pager(page=filters.page, total_pages=total_pages(total_count, filters.page_size)),
        count_text=count_text(total_count),
        status_text=status,
        degraded_notice=DEGRADED_NOTICE if degraded else "",
    )
