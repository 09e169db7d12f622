"""
Render component - Shell entry point.

Adapts the coordinator's display state to the pure renderer.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from resource_hub.components.filters import FilterSnapshot
from resource_hub.components.reload import DisplayState
from resource_hub.domain.entities import ViewerContext
from resource_hub.domain.taxonomy import Taxonomy

from ._impl import NEW_WITHIN, render
from .models import RenderPlan


def run_render(
    display: DisplayState,
    filters: FilterSnapshot,
    viewer: ViewerContext,
    taxonomy: Taxonomy,
    now: datetime,
    new_within: timedelta = NEW_WITHIN,
) -> RenderPlan:
    """
    Render the last applied page with the controls of the given filters.

    Callers pass `display.filters` once a reload has been applied so the
    cards, options and pager all come from one snapshot.
    """
    return render(
        records=display.records,
        total_count=display.total,
        tags=display.tags,
        filters=filters,
        is_privileged=viewer.is_privileged,
        taxonomy=taxonomy,
        now=now,
        status=display.status,
        degraded=display.degraded,
        new_within=new_within,
    )
