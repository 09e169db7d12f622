"""
Viewer component - Session and privilege resolution.
"""

from ._impl import PrivilegeLookup, ensure_profile, get_session, resolve_viewer

__all__ = [
    "PrivilegeLookup",
    "ensure_profile",
    "get_session",
    "resolve_viewer",
]
