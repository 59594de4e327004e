"""
Profile and saved-search endpoints for the signed-in user.
"""
from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from api.auth import CurrentUser
from api.deps import SupabaseAdminClient, raise_for_repository_error
from api.routers.auth import UserProfile
from openverse_backend.models.users import SavedSearch as SavedSearchModel
from openverse_backend.repositories.users import (
    UserRepositoryError,
    add_saved_search,
    delete_saved_search,
    get_saved_searches,
)

router = APIRouter(prefix="/users", tags=["users"])


# --- Pydantic models ---

class SavedSearchIn(BaseModel):
    type: Literal["image", "audio"]
    query: str = Field(..., min_length=1)
    filters: dict[str, Any] = Field(default_factory=dict)


class SavedSearch(BaseModel):
    type: str
    query: str
    filters: dict[str, Any] = Field(default_factory=dict)
    createdAt: str | None = None


# --- Endpoints ---

@router.get("/profile", response_model=UserProfile)
def get_profile(user: CurrentUser) -> dict[str, Any]:
    """Get the signed-in user's profile."""
    return user.public_dict()


@router.get("/saved-searches", response_model=list[SavedSearch])
def list_saved_searches(user: CurrentUser, db: SupabaseAdminClient) -> list[dict[str, Any]]:
    """List the user's saved searches, oldest first."""
    try:
        return get_saved_searches(db, user.id)
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "listing saved searches")


@router.post("/saved-searches", response_model=list[SavedSearch], status_code=201)
def create_saved_search(
    body: SavedSearchIn,
    user: CurrentUser,
    db: SupabaseAdminClient,
) -> list[dict[str, Any]]:
    """Save a search and return the updated list."""
    try:
        search = SavedSearchModel(type=body.type, query=body.query, filters=body.filters)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        return add_saved_search(db, user.id, search)
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "saving search")


@router.delete("/saved-searches/{index}", response_model=list[SavedSearch])
def remove_saved_search(index: int, user: CurrentUser, db: SupabaseAdminClient) -> list[dict[str, Any]]:
    """Delete the saved search at `index` and return the remaining list."""
    try:
        return delete_saved_search(db, user.id, index)
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "deleting saved search")
