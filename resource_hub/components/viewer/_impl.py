"""
Viewer context resolution.

Builds the immutable {session, is_privileged} context threaded through the
query resolver and renderer.

Key behaviors:
- Session fetch has an enforced timeout; timeout means "signed out"
- Privilege comes from the viewer's profile row (role == "admin")
- Lookup failures degrade to non-privileged with a logged warning
- First sign-in creates a member profile row
"""

from __future__ import annotations

import asyncio
import logging

from resource_hub.domain.entities import ANONYMOUS, Profile, Session, ViewerContext
from resource_hub.ports.auth import ProfileRepoPort, SessionProviderPort
from resource_hub.ports.records import RecordStoreError

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TIMEOUT = 5.0

# Collaborator failures that must never escalate past this module
LOOKUP_ERRORS = (RecordStoreError, TimeoutError, OSError)


async def get_session(
    provider: SessionProviderPort, timeout_seconds: float = DEFAULT_SESSION_TIMEOUT
) -> Session | None:
    try:
        return await asyncio.wait_for(provider.get_current_session(), timeout=timeout_seconds)
    except TimeoutError:
        logger.warning("Session lookup timed out after %ss, continuing signed out", timeout_seconds)
        return None
    except OSError as e:
        logger.warning("Session lookup failed (%s), continuing signed out", e)
        return None


class PrivilegeLookup:
    """Answers "is this session an admin?" from the profile table."""

    def __init__(
        self, profiles: ProfileRepoPort, timeout_seconds: float = DEFAULT_SESSION_TIMEOUT
    ) -> None:
        self._profiles = profiles
        self._timeout = timeout_seconds

    async def is_privileged(self, session: Session | None) -> bool:
        if session is None:
            return False
        try:
            profile = await asyncio.wait_for(
                self._profiles.get(session.user_id), timeout=self._timeout
            )
        except LOOKUP_ERRORS as e:
            logger.warning("Privilege lookup failed for %s: %r", session.user_id, e)
            return False
        return profile is not None and profile.role == "admin"

    async def viewer_for(self, session: Session | None) -> ViewerContext:
        if session is None:
            return ANONYMOUS
        return ViewerContext(session=session, is_privileged=await self.is_privileged(session))


async def ensure_profile(session: Session | None, profiles: ProfileRepoPort) -> Profile | None:
    """Create the profile row for a first-time user. No-op when signed out."""
    if session is None:
        return None
    try:
        existing = await profiles.get(session.user_id)
        if existing is not None:
            return existing
        profile = Profile(
            id=session.user_id,
            full_name=session.display_name,
            email=session.email,
        )
        saved = await profiles.save(profile)
    except LOOKUP_ERRORS as e:
        logger.warning("Could not ensure profile for %s: %r", session.user_id, e)
        return None
    logger.info("Created profile for %s", session.email)
    return saved


async def resolve_viewer(
    provider: SessionProviderPort,
    lookup: PrivilegeLookup,
    timeout_seconds: float = DEFAULT_SESSION_TIMEOUT,
) -> ViewerContext:
    session = await get_session(provider, timeout_seconds)
    return await lookup.viewer_for(session)
