"""
Tests for the resources and auth API endpoints.

Runs the FastAPI app against a temp SQLite database through dependency
overrides. Sessions are opened through the sign-in route, or directly on
the provider, and presented as bearer tokens.
"""

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from resource_hub.adapters.clock import FrozenClock
from resource_hub.adapters.session_store import InMemorySessionProvider
from resource_hub.adapters.sqlite.repos import SQLiteRecordStore
from resource_hub.api import deps
from resource_hub.api.main import app
from resource_hub.domain.entities import Profile, Record

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def provider() -> InMemorySessionProvider:
    return InMemorySessionProvider()


@pytest.fixture
def settings() -> deps.Settings:
    settings = deps.Settings()
    settings.email_sign_in = True
    return settings


@pytest_asyncio.fixture
async def client(record_store, profile_repo, provider, rules, settings):
    app.dependency_overrides[deps.get_settings] = lambda: settings
    app.dependency_overrides[deps.get_record_store] = lambda: record_store
    app.dependency_overrides[deps.get_profile_repo] = lambda: profile_repo
    app.dependency_overrides[deps.get_session_provider] = lambda: provider
    app.dependency_overrides[deps.get_rules] = lambda: rules
    app.dependency_overrides[deps.get_clock] = lambda: FrozenClock(NOW)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seeded(record_store):
    records = [
        Record(
            title="Algebra Basics",
            url="https://example.com/algebra",
            category="math",
            subcategory="Algebra",
            tags=("worksheet",),
            votes=5,
            approved=True,
            created_at=NOW - timedelta(days=2),
        ),
        Record(
            title="Cell Biology",
            url="https://example.com/cells",
            category="science",
            tags=("lab",),
            votes=2,
            approved=True,
            created_at=NOW - timedelta(days=30),
        ),
        Record(
            title="Pending Draft",
            url="https://example.com/draft",
            category="math",
            votes=50,
        ),
    ]
    for r in records:
        await record_store.insert(r)
    return records


async def _auth(provider, profile_repo, email: str, role: str = "member") -> dict[str, str]:
    session = await provider.sign_in(email)
    await profile_repo.save(Profile(id=session.user_id, email=email, role=role))
    return {"Authorization": f"Bearer {session.token}"}


# --- Browse ---


@pytest.mark.asyncio
async def test_browse_anonymous(client, seeded):
    response = await client.get("/api/resources")

    assert response.status_code == 200
    data = response.json()
    assert [i["title"] for i in data["items"]] == ["Algebra Basics", "Cell Biology"]
    assert data["total"] == 2
    assert data["count_text"] == "2 results • sorted by votes"
    assert data["pager"] == {"page": 1, "total_pages": 1, "has_prev": False, "has_next": False}
    assert data["items"][0]["is_new"] is True
    assert data["items"][0]["can_delete"] is False
    assert data["items"][0]["category_label"] == "Math • Algebra"
    assert [o["value"] for o in data["tag_options"]] == ["", "lab", "worksheet"]


@pytest.mark.asyncio
async def test_browse_filters(client, seeded):
    response = await client.get(
        "/api/resources", params={"category": "math", "subcategory": "Algebra", "q": "ALG"}
    )

    data = response.json()
    assert [i["title"] for i in data["items"]] == ["Algebra Basics"]
    selected = [o["value"] for o in data["category_options"] if o["selected"]]
    assert selected == ["math"]
    assert [o["value"] for o in data["subcategory_options"]] == [
        "",
        "Algebra",
        "Calculus",
        "Geometry",
    ]


@pytest.mark.asyncio
async def test_browse_rejects_page_zero(client, seeded):
    response = await client.get("/api/resources", params={"page": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_token_is_anonymous(client, seeded):
    response = await client.get("/api/resources", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 200
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_admin_sees_pending(client, seeded, provider, profile_repo):
    headers = await _auth(provider, profile_repo, "admin@school.org", role="admin")

    data = (await client.get("/api/resources", headers=headers)).json()

    assert data["items"][0]["title"] == "Pending Draft"
    assert data["items"][0]["approved"] is False
    assert all(i["can_delete"] for i in data["items"])


@pytest.mark.asyncio
async def test_store_failure_is_reported_in_status(client, tmp_path):
    broken = SQLiteRecordStore(str(tmp_path / "no_schema.db"))
    app.dependency_overrides[deps.get_record_store] = lambda: broken

    response = await client.get("/api/resources")

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["total"] == 0
    assert data["status"].startswith("Could not load resources")


# --- Create ---


@pytest.mark.asyncio
async def test_create_requires_session(client):
    response = await client.post(
        "/api/resources",
        json={"title": "Calc Notes", "url": "https://example.com/calc", "category": "math"},
    )

    assert response.status_code == 401
    assert response.json()["detail"][0]["code"] == "sign_in_required"


@pytest.mark.asyncio
async def test_create_validation_errors(client, provider, profile_repo):
    headers = await _auth(provider, profile_repo, "student@school.org")

    response = await client.post(
        "/api/resources",
        json={"title": " ", "url": "example.com", "category": "nowhere"},
        headers=headers,
    )

    assert response.status_code == 400
    codes = {e["code"] for e in response.json()["detail"]}
    assert codes == {"title_required", "url_invalid_scheme", "category_unknown"}


@pytest.mark.asyncio
async def test_member_create_awaits_approval(client, provider, profile_repo):
    headers = await _auth(provider, profile_repo, "student@school.org")

    response = await client.post(
        "/api/resources",
        json={
            "title": "Calc Notes",
            "url": "https://example.com/calc",
            "category": "math",
            "tags": "notes, calculus, notes",
        },
        headers=headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["approved"] is False
    assert data["tags"] == ["notes", "calculus"]
    listing = await client.get("/api/resources", params={"category": "math"})
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_admin_create_is_listed(client, provider, profile_repo):
    headers = await _auth(provider, profile_repo, "admin@school.org", role="admin")

    response = await client.post(
        "/api/resources",
        json={"title": "Calc Notes", "url": "https://example.com/calc", "category": "math"},
        headers=headers,
    )

    assert response.status_code == 201
    listing = await client.get("/api/resources", params={"category": "math", "page": 1})
    assert [i["title"] for i in listing.json()["items"]] == ["Calc Notes"]


# --- Delete ---


@pytest.mark.asyncio
async def test_delete_requires_privilege(client, seeded, provider, profile_repo):
    target = seeded[0].id

    assert (await client.delete(f"/api/resources/{target}")).status_code == 403

    headers = await _auth(provider, profile_repo, "student@school.org")
    response = await client.delete(f"/api/resources/{target}", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"][0]["code"] == "forbidden"


@pytest.mark.asyncio
async def test_admin_delete(client, seeded, provider, profile_repo):
    headers = await _auth(provider, profile_repo, "admin@school.org", role="admin")
    target = seeded[0].id

    assert (await client.delete(f"/api/resources/{target}", headers=headers)).status_code == 204
    assert (await client.delete(f"/api/resources/{target}", headers=headers)).status_code == 404
    missing = await client.delete(f"/api/resources/{uuid4()}", headers=headers)
    assert missing.status_code == 404


# --- Auth ---


@pytest.mark.asyncio
async def test_sign_in_token_opens_write_routes(client, profile_repo):
    response = await client.post(
        "/api/auth/sign-in", json={"email": "Student@School.org", "display_name": "Sam"}
    )

    assert response.status_code == 200
    token = response.json()
    assert token["token_type"] == "bearer"
    headers = {"Authorization": f"Bearer {token['access_token']}"}

    me = (await client.get("/api/auth/me", headers=headers)).json()
    assert me["signed_in"] is True
    assert me["email"] == "student@school.org"
    assert me["is_privileged"] is False
    assert profile_repo.get_by_email("student@school.org") is not None

    created = await client.post(
        "/api/resources",
        json={"title": "Calc Notes", "url": "https://example.com/calc", "category": "math"},
        headers=headers,
    )
    assert created.status_code == 201


@pytest.mark.asyncio
async def test_sign_in_keeps_stored_profile_id(client, profile_repo, seeded):
    admin_id = uuid4()
    await profile_repo.save(Profile(id=admin_id, email="admin@school.org", role="admin"))

    response = await client.post("/api/auth/sign-in", json={"email": "admin@school.org"})
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    me = (await client.get("/api/auth/me", headers=headers)).json()
    assert me["user_id"] == str(admin_id)
    assert me["is_privileged"] is True
    target = seeded[2].id
    assert (await client.delete(f"/api/resources/{target}", headers=headers)).status_code == 204


@pytest.mark.asyncio
async def test_sign_out_revokes_token(client):
    response = await client.post("/api/auth/sign-in", json={"email": "student@school.org"})
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    assert (await client.post("/api/auth/sign-out", headers=headers)).status_code == 200

    me = (await client.get("/api/auth/me", headers=headers)).json()
    assert me["signed_in"] is False
    created = await client.post(
        "/api/resources",
        json={"title": "Calc Notes", "url": "https://example.com/calc", "category": "math"},
        headers=headers,
    )
    assert created.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_rejects_bad_email(client):
    response = await client.post("/api/auth/sign-in", json={"email": "nobody"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_sign_in_disabled_by_default(client, settings):
    settings.email_sign_in = False

    response = await client.post("/api/auth/sign-in", json={"email": "student@school.org"})

    assert response.status_code == 404


# --- Taxonomy / health ---


@pytest.mark.asyncio
async def test_taxonomy(client):
    data = (await client.get("/api/taxonomy")).json()

    assert data[0]["id"] == "all"
    courses = next(c for c in data if c["id"] == "courses")
    assert courses["course_codes"] is True
    assert courses["subcategories"] == []


@pytest.mark.asyncio
async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "ok", "service": "api"}


def test_startup_runs_migrations(tmp_path, monkeypatch):
    db_path = tmp_path / "nested" / "startup.db"
    monkeypatch.setenv("RH_DB_PATH", str(db_path))
    monkeypatch.setenv("RH_RULES_PATH", str(PROJECT_ROOT / "rules.yaml"))
    deps.get_settings.cache_clear()
    deps.get_rules.cache_clear()
    try:
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
    finally:
        deps.get_settings.cache_clear()
        deps.get_rules.cache_clear()

    conn = sqlite3.connect(db_path)
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='resources'"
    ).fetchone()
    conn.close()
    assert row is not None


def test_email_sign_in_flag_reads_environment(monkeypatch):
    monkeypatch.delenv("RH_EMAIL_SIGN_IN", raising=False)
    assert deps.Settings().email_sign_in is False
    monkeypatch.setenv("RH_EMAIL_SIGN_IN", "1")
    assert deps.Settings().email_sign_in is True
