"""
Reload component - Single-flight reload coordination and debounce.
"""

from ._impl import ReloadCoordinator, ReloadScheduler
from .models import DisplayState, RenderHook, SchedulerState

__all__ = [
    "ReloadCoordinator",
    "ReloadScheduler",
    "DisplayState",
    "RenderHook",
    "SchedulerState",
]
