from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class MediaKind(str, Enum):
    """Openverse media collection a call targets."""

    IMAGE = "images"
    AUDIO = "audio"

    @property
    def label(self) -> str:
        return "image" if self is MediaKind.IMAGE else "audio"

    @property
    def display_name(self) -> str:
        return "Image" if self is MediaKind.IMAGE else "Audio"


class MediaLicense(str, Enum):
    BY = "by"
    BY_SA = "by-sa"
    BY_NC = "by-nc"
    BY_ND = "by-nd"
    BY_NC_SA = "by-nc-sa"
    BY_NC_ND = "by-nc-nd"
    PDM = "pdm"
    CC0 = "cc0"


class ImageCategory(str, Enum):
    PHOTOGRAPH = "photograph"
    ILLUSTRATION = "illustration"
    DIGITIZED_ARTWORK = "digitized_artwork"


def _validate_paging(q: str, page: int, page_size: int) -> None:
    if not isinstance(q, str) or not q.strip():
        raise ValueError("Search query `q` must be a non-empty string.")
    if int(page) < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if not 1 <= int(page_size) <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")


def _param_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class _SearchRequest:
    q: str
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        _validate_paging(self.q, self.page, self.page_size)

    def to_query_params(self) -> dict[str, str]:
        """
        Serialize every field that is set into Openverse query params.

        Enum filters are sent as their literal codes (e.g. `by-sa`).
        """

        params: dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            params[f.name] = _param_value(value)
        return params


@dataclass(frozen=True)
class ImageSearchRequest(_SearchRequest):
    license: MediaLicense | None = None
    category: ImageCategory | None = None
    source: str | None = None
    creator: str | None = None
    tags: str | None = None


@dataclass(frozen=True)
class AudioSearchRequest(_SearchRequest):
    license: MediaLicense | None = None
    source: str | None = None
    creator: str | None = None
    genres: str | None = None
    duration: str | None = None  # e.g. "0-300"
    tags: str | None = None


SearchRequest = ImageSearchRequest | AudioSearchRequest
