import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Enums / Literals ---
ProfileRole = Literal["member", "admin"]

URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Records ---

class Record(BaseModel):
    """One directory entry. Immutable snapshot of a stored row."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID | None = None
    title: str
    url: str
    category: str
    subcategory: str = ""
    tags: tuple[str, ...] = ()
    description: str = ""
    votes: int = 0
    approved: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value

    @field_validator("url")
    @classmethod
    def _url_scheme(cls, value: str) -> str:
        if not URL_PATTERN.match(value):
            raise ValueError("url must start with http:// or https://")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            raise ValueError("tags must be a list of strings, not a single string")
        seen: dict[str, None] = {}
        for tag in value:  # type: ignore[attr-defined]
            seen.setdefault(str(tag), None)
        return tuple(seen)


# --- Auth ---

class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    email: str
    display_name: str = ""
    token: str = Field(default_factory=lambda: uuid4().hex)
    created_at: datetime = Field(default_factory=utcnow)


class Profile(BaseModel):
    id: UUID  # Same as the session user id
    full_name: str = ""
    email: str = ""
    role: ProfileRole = "member"
    created_at: datetime = Field(default_factory=utcnow)


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking at the directory. Recomputed on every auth transition."""

    session: Session | None = None
    is_privileged: bool = False

    @property
    def user_id(self) -> UUID | None:
        return self.session.user_id if self.session else None

    @property
    def is_signed_in(self) -> bool:
        return self.session is not None


ANONYMOUS = ViewerContext()
