from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Callable

from supabase import Client

from openverse_backend.models.users import SavedSearch, UserCreate

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
_USER_COLUMNS = "id,first_name,last_name,email,password_hash,saved_searches,created_at,updated_at"
_SAVED_SEARCH_MAX_RETRIES = 3


class UserRepositoryError(RuntimeError):
    status_code = 500


class UserNotFoundError(UserRepositoryError):
    status_code = 404

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class UserAlreadyExistsError(UserRepositoryError):
    status_code = 409

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class SavedSearchNotFoundError(UserRepositoryError):
    status_code = 404

    def __init__(self, message: str = "Saved search not found") -> None:
        super().__init__(message)


def _now_utc_iso() -> str:
    return datetime.now(UTC).isoformat()


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def _is_unique_violation(message: str) -> bool:
    msg = (message or "").casefold()
    return "23505" in msg or "duplicate key" in msg or ("unique" in msg and "email" in msg)


def _raise_for_supabase_error(response: Any, context: str) -> None:
    if hasattr(response, "error") and response.error:
        raise UserRepositoryError(f"Supabase error during {context}: {response.error}")


def _first_row(response: Any) -> dict[str, Any] | None:
    data = response.data or []
    if isinstance(data, list) and data:
        return data[0]
    if isinstance(data, dict) and data:
        return data
    return None


def find_user_by_email(db: Client, email: str) -> dict[str, Any] | None:
    response = (
        db.table(USERS_TABLE)
        .select(_USER_COLUMNS)
        .eq("email", _normalize_email(email))
        .limit(1)
        .execute()
    )
    _raise_for_supabase_error(response, "finding user by email")
    return _first_row(response)


def find_user_by_id(db: Client, user_id: str) -> dict[str, Any] | None:
    response = (
        db.table(USERS_TABLE)
        .select(_USER_COLUMNS)
        .eq("id", str(user_id))
        .limit(1)
        .execute()
    )
    _raise_for_supabase_error(response, "finding user by id")
    return _first_row(response)


def require_user_by_id(db: Client, user_id: str) -> dict[str, Any]:
    row = find_user_by_id(db, user_id)
    if row is None:
        raise UserNotFoundError()
    return row


def insert_user(db: Client, user: UserCreate, *, password_hash: str) -> dict[str, Any]:
    """
    Insert a new user row. `user.password` is never stored; pass the bcrypt hash.
    """

    email = _normalize_email(user.email)
    if find_user_by_email(db, email) is not None:
        raise UserAlreadyExistsError()

    now = _now_utc_iso()
    payload: dict[str, Any] = {
        "first_name": user.first_name.strip(),
        "last_name": user.last_name.strip(),
        "email": email,
        "password_hash": password_hash,
        "saved_searches": [],
        "created_at": now,
        "updated_at": now,
    }
    try:
        response = db.table(USERS_TABLE).insert(payload).execute()
    except Exception as exc:
        # A concurrent registration can slip past the lookup above.
        if _is_unique_violation(str(exc)):
            raise UserAlreadyExistsError() from exc
        raise UserRepositoryError(f"Supabase error during inserting user: {exc}") from exc

    _raise_for_supabase_error(response, "inserting user")
    row = _first_row(response)
    if row is None:
        raise UserRepositoryError("Supabase insert returned no data for user.")
    return row


def _saved_search_rows(row: dict[str, Any]) -> list[dict[str, Any]]:
    value = row.get("saved_searches") or []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _compare_and_set_saved_searches(
    db: Client,
    user_id: str,
    searches: list[dict[str, Any]],
    *,
    expected_updated_at: str | None,
) -> bool:
    """
    Write `searches` only if the row still carries `expected_updated_at`.

    Returns False when another writer changed the row first.
    """

    query = (
        db.table(USERS_TABLE)
        .update({"saved_searches": searches, "updated_at": _now_utc_iso()})
        .eq("id", str(user_id))
    )
    if expected_updated_at is None:
        query = query.is_("updated_at", "null")
    else:
        query = query.eq("updated_at", expected_updated_at)
    response = query.execute()
    _raise_for_supabase_error(response, "updating saved searches")
    return bool(response.data)


def _modify_saved_searches(
    db: Client,
    user_id: str,
    change: Callable[[list[dict[str, Any]]], list[dict[str, Any]]],
) -> list[dict[str, Any]]:
    # Read-modify-write guarded on `updated_at`; a lost race re-reads and reapplies `change`.
    for attempt in range(_SAVED_SEARCH_MAX_RETRIES + 1):
        row = require_user_by_id(db, user_id)
        updated = change(_saved_search_rows(row))
        if _compare_and_set_saved_searches(db, user_id, updated, expected_updated_at=row.get("updated_at")):
            return updated
        logger.info(f"Saved searches for user {user_id} changed concurrently; retrying (attempt {attempt + 1}).")
    raise UserRepositoryError(
        f"Supabase error during updating saved searches: too many concurrent updates for user {user_id}"
    )


def get_saved_searches(db: Client, user_id: str) -> list[dict[str, Any]]:
    return _saved_search_rows(require_user_by_id(db, user_id))


def add_saved_search(db: Client, user_id: str, search: SavedSearch) -> list[dict[str, Any]]:
    """
    Append `search` to the user's saved searches and return the updated list.
    """

    stamped = SavedSearch(
        type=search.type,
        query=search.query,
        filters=search.filters,
        created_at=_now_utc_iso(),
    )
    return _modify_saved_searches(db, user_id, lambda searches: [*searches, stamped.to_row()])


def delete_saved_search(db: Client, user_id: str, index: int) -> list[dict[str, Any]]:
    """
    Remove the saved search at position `index` and return the remaining list.
    """

    def _remove(searches: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if index < 0 or index >= len(searches):
            raise SavedSearchNotFoundError()
        return [item for i, item in enumerate(searches) if i != index]

    return _modify_saved_searches(db, user_id, _remove)
