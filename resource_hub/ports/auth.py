from collections.abc import Awaitable, Callable
from typing import Protocol
from uuid import UUID

from resource_hub.domain.entities import Profile, Session

SessionCallback = Callable[[Session | None], Awaitable[None]]


class SessionProviderPort(Protocol):
    async def get_current_session(self) -> Session | None:
        ...

    def on_session_change(self, callback: SessionCallback) -> None:
        """Register a coroutine called with the new session on sign in/out."""
        ...

    async def sign_in(self, email: str, display_name: str = "") -> Session:
        ...

    async def sign_out(self) -> None:
        ...


class ProfileRepoPort(Protocol):
    async def get(self, user_id: UUID) -> Profile | None:
        ...

    async def save(self, profile: Profile) -> Profile:
        ...
