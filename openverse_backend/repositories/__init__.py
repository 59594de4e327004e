"""
Repository layer for DB access patterns.
"""

from openverse_backend.repositories.users import (
    SavedSearchNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserRepositoryError,
    add_saved_search,
    delete_saved_search,
    find_user_by_email,
    find_user_by_id,
    get_saved_searches,
    insert_user,
)

__all__ = [
    "SavedSearchNotFoundError",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "UserRepositoryError",
    "add_saved_search",
    "delete_saved_search",
    "find_user_by_email",
    "find_user_by_id",
    "get_saved_searches",
    "insert_user",
]
