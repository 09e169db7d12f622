import asyncio
import json
import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID

from resource_hub.domain.entities import Profile, Record
from resource_hub.ports.records import RecordQuery, RecordStoreError

LIKE_ESCAPE = "\\"


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _like_pattern(text: str) -> str:
    escaped = (
        text.casefold()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value else value


def build_where(query: RecordQuery) -> tuple[str, list[Any]]:
    """Translate the predicate set to a WHERE clause and its parameters."""
    clauses: list[str] = []
    params: list[Any] = []

    if query.approved_only:
        clauses.append("approved = 1")
    if query.category is not None:
        clauses.append("category = ?")
        params.append(query.category)
    if query.subcategory is not None:
        clauses.append("subcategory = ?")
        params.append(query.subcategory)
    if query.tag is not None:
        clauses.append("EXISTS (SELECT 1 FROM json_each(resources.tags) WHERE json_each.value = ?)")
        params.append(query.tag)
    if query.text:
        pattern = _like_pattern(query.text)
        clauses.append(
            "(casefold(title) LIKE ? ESCAPE '\\' "
            "OR casefold(description) LIKE ? ESCAPE '\\' "
            "OR casefold(url) LIKE ? ESCAPE '\\')"
        )
        params.extend([pattern, pattern, pattern])

    where = " WHERE " + " AND ".join(clauses) if clauses else ""
    return where, params


class SQLiteRecordStore:
    """Record store backed by SQLite. Blocking calls run in a worker thread."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        # SQLite's lower() only folds ASCII
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    async def query(self, query: RecordQuery) -> tuple[list[Record], int]:
        return await asyncio.to_thread(self._query_sync, query)

    async def insert(self, record: Record) -> Record:
        return await asyncio.to_thread(self._insert_sync, record)

    async def delete(self, record_id: UUID) -> bool:
        return await asyncio.to_thread(self._delete_sync, record_id)

    async def set_approved(self, record_id: UUID, approved: bool) -> bool:
        return await asyncio.to_thread(self._set_approved_sync, record_id, approved)

    def _query_sync(self, query: RecordQuery) -> tuple[list[Record], int]:
        where, params = build_where(query)
        conn = self._get_conn()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM resources{where}", params).fetchone()
            rows = conn.execute(
                f"SELECT * FROM resources{where} "
                "ORDER BY votes DESC, title COLLATE NOCASE ASC, title ASC "
                "LIMIT ? OFFSET ?",
                [*params, query.limit, query.offset],
            ).fetchall()
            return [self._map_row(row) for row in rows], int(total["n"])
        except sqlite3.OperationalError as e:
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _insert_sync(self, record: Record) -> Record:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO resources (
                    id, user_id, title, url, category, subcategory,
                    tags, description, votes, approved, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(record.id),
                    str(record.owner_id) if record.owner_id else None,
                    record.title,
                    record.url,
                    record.category,
                    record.subcategory,
                    json.dumps(list(record.tags)),
                    record.description,
                    record.votes,
                    1 if record.approved else 0,
                    record.created_at.isoformat(),
                ),
            )
            conn.commit()
            return record
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise RecordStoreError("unavailable", f"Record rejected: {e}") from e
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _delete_sync(self, record_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM resources WHERE id = ?", (str(record_id),))
            conn.commit()
            return cursor.rowcount > 0
        except sqlite3.OperationalError as e:
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _set_approved_sync(self, record_id: UUID, approved: bool) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "UPDATE resources SET approved = ? WHERE id = ?",
                (1 if approved else 0, str(record_id)),
            )
            conn.commit()
            return cursor.rowcount > 0
        except sqlite3.OperationalError as e:
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Record:
        return Record(
            id=UUID(row["id"]),
            owner_id=UUID(row["user_id"]) if row["user_id"] else None,
            title=row["title"],
            url=row["url"],
            category=row["category"],
            subcategory=row["subcategory"] or "",
            tags=tuple(json.loads(row["tags"] or "[]")),
            description=row["description"] or "",
            votes=row["votes"] or 0,
            approved=bool(row["approved"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteProfileRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    async def get(self, user_id: UUID) -> Profile | None:
        return await asyncio.to_thread(self._get_sync, user_id)

    async def save(self, profile: Profile) -> Profile:
        return await asyncio.to_thread(self._save_sync, profile)

    def get_by_email(self, email: str) -> Profile | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM profiles WHERE lower(email) = ?", (email.strip().lower(),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def _get_sync(self, user_id: UUID) -> Profile | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (str(user_id),)).fetchone()
            return self._map_row(row) if row else None
        except sqlite3.OperationalError as e:
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _save_sync(self, profile: Profile) -> Profile:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO profiles (id, full_name, email, role, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    full_name=excluded.full_name,
                    email=excluded.email,
                    role=excluded.role
            """,
                (
                    str(profile.id),
                    profile.full_name,
                    profile.email,
                    profile.role,
                    profile.created_at.isoformat(),
                ),
            )
            conn.commit()
            return profile
        except sqlite3.OperationalError as e:
            raise RecordStoreError("unavailable", str(e)) from e
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Profile:
        return Profile(
            id=UUID(row["id"]),
            full_name=row["full_name"],
            email=row["email"],
            role=row["role"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
