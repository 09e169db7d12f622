"""In-memory session provider adapter.

This adapter implements SessionProviderPort. It does not authenticate
anyone: sign_in trusts the identity it is given, the way an upstream
identity provider would hand one over. Suitable for single-process
deployments and tests.
"""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from resource_hub.domain.entities import Session
from resource_hub.ports.auth import SessionCallback

logger = logging.getLogger(__name__)


class InMemorySessionProvider:
    def __init__(self, known_users: dict[str, UUID] | None = None) -> None:
        self._sessions: dict[str, Session] = {}
        # email -> user id; seeded from persisted profiles so ids survive restarts
        self._user_ids: dict[str, UUID] = {
            email.strip().lower(): user_id for email, user_id in (known_users or {}).items()
        }
        self._current: Session | None = None
        self._callbacks: list[SessionCallback] = []

    async def get_current_session(self) -> Session | None:
        return self._current

    def on_session_change(self, callback: SessionCallback) -> None:
        self._callbacks.append(callback)

    async def sign_in(self, email: str, display_name: str = "") -> Session:
        key = email.strip().lower()
        user_id = self._user_ids.setdefault(key, uuid4())
        session = Session(user_id=user_id, email=key, display_name=display_name)
        self._sessions[session.token] = session
        self._current = session
        logger.info("Signed in %s", key)
        await self._notify(session)
        return session

    async def sign_out(self) -> None:
        if self._current is not None:
            self._sessions.pop(self._current.token, None)
            logger.info("Signed out %s", self._current.email)
        self._current = None
        await self._notify(None)

    def get(self, token: str) -> Session | None:
        """Get session by token."""
        return self._sessions.get(token)

    def user_id_for(self, email: str) -> UUID | None:
        return self._user_ids.get(email.strip().lower())

    def remember(self, email: str, user_id: UUID) -> None:
        """Pin the id issued for an email, e.g. from a stored profile."""
        self._user_ids[email.strip().lower()] = user_id

    def revoke(self, token: str) -> bool:
        """Drop a single session by token. Returns False if it was unknown."""
        session = self._sessions.pop(token, None)
        if session is None:
            return False
        if self._current is not None and self._current.token == token:
            self._current = None
        logger.info("Revoked session for %s", session.email)
        return True

    def clear(self) -> None:
        """Clear all sessions - useful for testing."""
        self._sessions.clear()
        self._current = None

    async def _notify(self, session: Session | None) -> None:
        for callback in list(self._callbacks):
            await callback(session)
