"""
Openverse integration client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from openverse_backend.integrations.openverse.client import (
        OpenverseAuthError,
        OpenverseClient,
        OpenverseClientError,
        OpenverseConfigurationError,
        OpenverseNotFoundError,
        OpenverseRequestError,
    )

__all__ = [
    "OpenverseAuthError",
    "OpenverseClient",
    "OpenverseClientError",
    "OpenverseConfigurationError",
    "OpenverseNotFoundError",
    "OpenverseRequestError",
]


def __getattr__(name: str):
    if name in __all__:
        from openverse_backend.integrations.openverse import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
