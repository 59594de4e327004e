"""
Openverse media endpoints: image/audio search and lookup by id.

Every endpoint requires a signed-in user; the upstream client-credentials
token is handled by the shared Openverse client.
"""
from __future__ import annotations

from typing import Any, Callable, TypeVar

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from api.auth import CurrentUser
from api.deps import Openverse, raise_for_openverse_error
from openverse_backend.integrations.openverse.client import OpenverseClientError
from openverse_backend.models.media import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AudioSearchRequest,
    ImageCategory,
    ImageSearchRequest,
    MediaKind,
    MediaLicense,
)

router = APIRouter(prefix="/openverse", tags=["openverse"])

_RequestT = TypeVar("_RequestT")


# --- Pydantic models ---

class Tag(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    accuracy: float | None = None


class AltFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str
    filesize: int | None = None
    bit_rate: int | None = None


class _MediaItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str | None = None
    creator: str | None = None
    creator_url: str | None = None
    license: str | None = None
    license_url: str | None = None
    license_version: str | None = None
    foreign_landing_url: str | None = None
    url: str | None = None
    thumbnail: str | None = None
    source: str | None = None
    tags: list[Tag] | None = None
    description: str | None = None
    attribution: str | None = None
    mature: bool | None = None
    filesize: int | None = None


class Image(_MediaItem):
    width: int | None = None
    height: int | None = None
    category: str | None = None


class Audio(_MediaItem):
    duration: int | None = None
    bit_rate: int | None = None
    sample_rate: int | None = None
    genres: list[str] | None = None
    audio_set: Any = None
    alt_files: list[AltFile] | None = None


class _Paginated(BaseModel):
    model_config = ConfigDict(extra="allow")

    result_count: int
    page_count: int
    page_size: int
    page: int


class PaginatedImageList(_Paginated):
    results: list[Image]


class PaginatedAudioList(_Paginated):
    results: list[Audio]


def _build_request(factory: Callable[..., _RequestT], **kwargs: Any) -> _RequestT:
    try:
        return factory(**kwargs)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# --- Endpoints ---
# Upstream payloads are returned as-is; the response models above only document them.

@router.get("/images", response_model=PaginatedImageList)
def search_images(
    _user: CurrentUser,
    client: Openverse,
    q: str = Query(..., min_length=1, description="Search query for images"),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(default=1, ge=1),
    license: MediaLicense | None = Query(default=None),
    category: ImageCategory | None = Query(default=None),
    source: str | None = Query(default=None),
    creator: str | None = Query(default=None),
    tags: str | None = Query(default=None),
) -> JSONResponse:
    """Search for images in Openverse."""
    request = _build_request(
        ImageSearchRequest,
        q=q,
        page=page,
        page_size=page_size,
        license=license,
        category=category,
        source=source,
        creator=creator,
        tags=tags,
    )
    try:
        payload = client.search(MediaKind.IMAGE, request)
    except OpenverseClientError as exc:
        raise_for_openverse_error(exc)
    return JSONResponse(payload)


@router.get("/images/{image_id}", response_model=Image)
def get_image(_user: CurrentUser, client: Openverse, image_id: str) -> JSONResponse:
    """Get a specific image by ID."""
    try:
        payload = client.get_by_id(MediaKind.IMAGE, image_id)
    except OpenverseClientError as exc:
        raise_for_openverse_error(exc)
    return JSONResponse(payload)


@router.get("/audio", response_model=PaginatedAudioList)
def search_audio(
    _user: CurrentUser,
    client: Openverse,
    q: str = Query(..., min_length=1, description="Search query for audio"),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(default=1, ge=1),
    license: MediaLicense | None = Query(default=None),
    source: str | None = Query(default=None),
    creator: str | None = Query(default=None),
    genres: str | None = Query(default=None),
    duration: str | None = Query(default=None, description="Duration range, e.g. 0-300"),
    tags: str | None = Query(default=None),
) -> JSONResponse:
    """Search for audio in Openverse."""
    request = _build_request(
        AudioSearchRequest,
        q=q,
        page=page,
        page_size=page_size,
        license=license,
        source=source,
        creator=creator,
        genres=genres,
        duration=duration,
        tags=tags,
    )
    try:
        payload = client.search(MediaKind.AUDIO, request)
    except OpenverseClientError as exc:
        raise_for_openverse_error(exc)
    return JSONResponse(payload)


@router.get("/audio/{audio_id}", response_model=Audio)
def get_audio(_user: CurrentUser, client: Openverse, audio_id: str) -> JSONResponse:
    """Get a specific audio file by ID."""
    try:
        payload = client.get_by_id(MediaKind.AUDIO, audio_id)
    except OpenverseClientError as exc:
        raise_for_openverse_error(exc)
    return JSONResponse(payload)
