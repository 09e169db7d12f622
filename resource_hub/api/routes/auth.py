"""Routes that open and close API sessions."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from resource_hub.adapters.session_store import InMemorySessionProvider
from resource_hub.adapters.sqlite.repos import SQLiteProfileRepo
from resource_hub.api.deps import (
    Settings,
    bearer_scheme,
    get_profile_repo,
    get_session_provider,
    get_settings,
    get_viewer,
)
from resource_hub.components.viewer import ensure_profile
from resource_hub.domain.entities import ViewerContext

logger = logging.getLogger(__name__)

router = APIRouter()


class SignInRequest(BaseModel):
    email: str
    display_name: str = ""


class Token(BaseModel):
    access_token: str
    token_type: str


class ViewerResponse(BaseModel):
    signed_in: bool
    user_id: str | None
    email: str | None
    is_privileged: bool


@router.post("/sign-in", response_model=Token)
async def sign_in(
    data: SignInRequest,
    settings: Settings = Depends(get_settings),
    provider: InMemorySessionProvider = Depends(get_session_provider),
    profiles: SQLiteProfileRepo = Depends(get_profile_repo),
) -> Token:
    """
    Open a session for an identity asserted by the caller.

    Disabled unless RH_EMAIL_SIGN_IN=1, since the email is not verified here.
    A returning user keeps the id of their stored profile.
    """
    if not settings.email_sign_in:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sign-in disabled")

    email = data.email.strip()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")

    if provider.user_id_for(email) is None:
        existing = await asyncio.to_thread(profiles.get_by_email, email)
        if existing is not None:
            provider.remember(email, existing.id)

    session = await provider.sign_in(email, data.display_name)
    await ensure_profile(session, profiles)
    return Token(access_token=session.token, token_type="bearer")


@router.post("/sign-out")
def sign_out(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    provider: InMemorySessionProvider = Depends(get_session_provider),
) -> dict[str, str]:
    if credentials is not None:
        provider.revoke(credentials.credentials)
    return {"status": "success"}


@router.get("/me", response_model=ViewerResponse)
def read_viewer(viewer: ViewerContext = Depends(get_viewer)) -> ViewerResponse:
    session = viewer.session
    return ViewerResponse(
        signed_in=viewer.is_signed_in,
        user_id=str(viewer.user_id) if viewer.user_id else None,
        email=session.email if session else None,
        is_privileged=viewer.is_privileged,
    )
