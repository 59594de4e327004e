"""
Domain models shared across the library and the API.
"""

from openverse_backend.models.media import (
    AudioSearchRequest,
    ImageCategory,
    ImageSearchRequest,
    MediaKind,
    MediaLicense,
)
from openverse_backend.models.users import SavedSearch, UserCreate, UserRecord

__all__ = [
    "AudioSearchRequest",
    "ImageCategory",
    "ImageSearchRequest",
    "MediaKind",
    "MediaLicense",
    "SavedSearch",
    "UserCreate",
    "UserRecord",
]
