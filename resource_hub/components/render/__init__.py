"""
Render component - Display state to render plan.
"""

from ._impl import count_text, is_new, render, total_pages
from .component import run_render
from .models import Option, Pager, RecordCard, RenderPlan

__all__ = [
    # Entry points
    "render",
    "run_render",
    # Helpers
    "count_text",
    "is_new",
    "total_pages",
    # Models
    "Option",
    "Pager",
    "RecordCard",
    "RenderPlan",
]
