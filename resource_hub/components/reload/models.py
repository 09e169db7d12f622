"""
Reload component - Data models.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from resource_hub.components.filters import FilterSnapshot
from resource_hub.domain.entities import Record


class SchedulerState(str, Enum):
    """Debounce/single-flight states: IDLE -> PENDING -> IN_FLIGHT -> IDLE."""

    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


@dataclass(frozen=True)
class DisplayState:
    """
    What the browser currently shows.

    Always corresponds to exactly one filter snapshot (or none at boot).
    """

    filters: FilterSnapshot | None = None
    records: tuple[Record, ...] = ()
    total: int = 0
    tags: tuple[str, ...] = field(default_factory=tuple)
    status: str = ""
    degraded: bool = False
    generation: int = 0


RenderHook = Callable[[DisplayState], None]
