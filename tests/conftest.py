from pathlib import Path

import pytest

from resource_hub.adapters.session_store import InMemorySessionProvider
from resource_hub.adapters.sqlite.migrator import SQLiteMigrator
from resource_hub.adapters.sqlite.repos import SQLiteProfileRepo, SQLiteRecordStore
from resource_hub.rules.loader import load_rules
from resource_hub.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def db_path(tmp_path) -> str:
    """A migrated SQLite database in a temp directory."""
    path = str(tmp_path / "resource_hub.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def record_store(db_path) -> SQLiteRecordStore:
    return SQLiteRecordStore(db_path)


@pytest.fixture
def profile_repo(db_path) -> SQLiteProfileRepo:
    return SQLiteProfileRepo(db_path)


@pytest.fixture
def session_provider() -> InMemorySessionProvider:
    return InMemorySessionProvider()


@pytest.fixture
def rules() -> Rules:
    """The real rules.yaml shipped at the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")
