import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from resource_hub.adapters.clock import SystemClock
from resource_hub.adapters.session_store import InMemorySessionProvider
from resource_hub.adapters.sqlite.repos import SQLiteProfileRepo, SQLiteRecordStore
from resource_hub.components.query import QueryResolver
from resource_hub.components.records import RecordService
from resource_hub.components.viewer import PrivilegeLookup
from resource_hub.domain.entities import ANONYMOUS, ViewerContext
from resource_hub.domain.taxonomy import Taxonomy
from resource_hub.rules.loader import load_rules_or_default
from resource_hub.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("RH_DATA_DIR", "./data"))
        self.db_path = os.environ.get("RH_DB_PATH", str(self.data_dir / "resource_hub.db"))
        self.rules_path = Path(os.environ.get("RH_RULES_PATH", "rules.yaml"))
        # Email-only sign-in; enable only behind a trusted identity proxy
        self.email_sign_in = os.environ.get("RH_EMAIL_SIGN_IN", "") == "1"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules_or_default(get_settings().rules_path)


def get_taxonomy(rules: Rules = Depends(get_rules)) -> Taxonomy:
    return rules.taxonomy.build()


# --- Repos ---
def get_record_store(settings: Settings = Depends(get_settings)) -> SQLiteRecordStore:
    return SQLiteRecordStore(settings.db_path)


def get_profile_repo(settings: Settings = Depends(get_settings)) -> SQLiteProfileRepo:
    return SQLiteProfileRepo(settings.db_path)


@lru_cache
def get_session_provider() -> InMemorySessionProvider:
    return InMemorySessionProvider()


def get_clock() -> SystemClock:
    return SystemClock()


# --- Component Services ---
def get_resolver(
    store: SQLiteRecordStore = Depends(get_record_store),
    rules: Rules = Depends(get_rules),
) -> QueryResolver:
    return QueryResolver(store, timeout_seconds=rules.timeouts.query_seconds)


def get_record_service(
    store: SQLiteRecordStore = Depends(get_record_store),
    taxonomy: Taxonomy = Depends(get_taxonomy),
) -> RecordService:
    return RecordService(store=store, taxonomy=taxonomy)


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


async def get_viewer(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    provider: InMemorySessionProvider = Depends(get_session_provider),
    profiles: SQLiteProfileRepo = Depends(get_profile_repo),
    rules: Rules = Depends(get_rules),
) -> ViewerContext:
    """Anonymous unless a known bearer token is presented."""
    if credentials is None:
        return ANONYMOUS
    session = provider.get(credentials.credentials)
    if session is None:
        return ANONYMOUS
    lookup = PrivilegeLookup(profiles, timeout_seconds=rules.timeouts.session_seconds)
    return await lookup.viewer_for(session)
