from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

SAVED_SEARCH_TYPES = ("image", "audio")


@dataclass(frozen=True)
class SavedSearch:
    """
    A search the user chose to keep (stored in `users.saved_searches` jsonb).
    """

    type: str
    query: str
    filters: Mapping[str, Any] = field(default_factory=dict)
    created_at: str | None = None

    def __post_init__(self) -> None:
        if self.type not in SAVED_SEARCH_TYPES:
            raise ValueError(f"Saved search type must be one of {SAVED_SEARCH_TYPES}, got {self.type!r}")
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValueError("Saved search query must be a non-empty string.")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SavedSearch:
        filters = row.get("filters")
        return cls(
            type=str(row.get("type") or ""),
            query=str(row.get("query") or ""),
            filters=dict(filters) if isinstance(filters, Mapping) else {},
            created_at=row.get("createdAt") or row.get("created_at"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "query": self.query,
            "filters": dict(self.filters),
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class UserCreate:
    first_name: str
    last_name: str
    email: str
    password: str


@dataclass(frozen=True)
class UserRecord:
    """
    Canonical user record (maps to `public.users`).

    `password_hash` never leaves the backend; use `public_dict()` for responses.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    password_hash: str | None = None
    saved_searches: tuple[SavedSearch, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> UserRecord:
        raw_searches = row.get("saved_searches") or []
        searches: list[SavedSearch] = []
        if isinstance(raw_searches, list):
            for item in raw_searches:
                if not isinstance(item, Mapping):
                    continue
                try:
                    searches.append(SavedSearch.from_row(item))
                except ValueError:
                    continue
        return cls(
            id=str(row.get("id") or ""),
            first_name=str(row.get("first_name") or ""),
            last_name=str(row.get("last_name") or ""),
            email=str(row.get("email") or ""),
            password_hash=row.get("password_hash"),
            saved_searches=tuple(searches),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
