"""
Authentication utilities for FastAPI.

Resolves the current user from the backend-issued JWT in the
Authorization header.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from api.deps import SupabaseAdminClient, raise_for_repository_error
from openverse_backend.auth.service import InvalidCredentialsError, resolve_user_from_token
from openverse_backend.models.users import UserRecord
from openverse_backend.repositories.users import UserRepositoryError

logger = logging.getLogger(__name__)


def get_bearer_token(request: Request) -> str | None:
    """
    Extract Bearer token from Authorization header.

    Returns None if no token is present.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(request: Request, db: SupabaseAdminClient) -> UserRecord:
    """
    Dependency that requires a valid authenticated user.

    Raises 401 if no token or invalid token.
    """
    token = get_bearer_token(request)
    if not token:
        raise _unauthorized("Authentication required. Please provide a valid access token.")

    try:
        return resolve_user_from_token(db, token)
    except InvalidCredentialsError as exc:
        logger.warning(f"Failed to validate token: {exc}")
        raise _unauthorized(exc.message) from exc
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "validating token")


# Type alias for dependency injection
CurrentUser = Annotated[UserRecord, Depends(require_user)]
