"""
Dependency injection for the Supabase client, the Openverse client and
other shared resources.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException
from supabase import Client, create_client

from openverse_backend.integrations.openverse.client import OpenverseClient, OpenverseClientError
from openverse_backend.repositories.users import UserRepositoryError
from openverse_backend.utils.env import load_env

load_env()

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_url() -> str:
    url = (os.getenv("SUPABASE_URL") or "").strip()
    if not url:
        raise RuntimeError("SUPABASE_URL environment variable is not set")
    return url


@lru_cache
def get_supabase_service_key() -> str:
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY environment variable is not set")
    return key


@lru_cache
def get_supabase_admin_client() -> Client:
    """
    Returns a Supabase client using the service role key (bypasses RLS).

    The backend owns the `users` table, password hashes included, so every
    query goes through this client.
    """
    return create_client(get_supabase_url(), get_supabase_service_key())


@lru_cache
def get_openverse_client() -> OpenverseClient:
    """
    Returns the process-wide Openverse client.

    One instance holds the cached upstream token for every request.
    """
    return OpenverseClient.from_env()


# Type aliases for dependency injection
SupabaseAdminClient = Annotated[Client, Depends(get_supabase_admin_client)]
Openverse = Annotated[OpenverseClient, Depends(get_openverse_client)]


def raise_for_openverse_error(exc: OpenverseClientError) -> NoReturn:
    """
    Translate an Openverse client error into an HTTP error.

    Not-found and upstream request errors keep their status; configuration
    and auth failures are always 500.
    """
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def raise_for_repository_error(exc: UserRepositoryError, context: str = "database operation") -> NoReturn:
    """
    Translate a user repository error into an HTTP error.

    Raises:
        HTTPException: 404/409 with the domain message, 502 for Supabase errors
    """
    if exc.status_code in (404, 409):
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    logger.error(f"Supabase error during {context}: {exc}")
    # Don't leak internal error details to client
    raise HTTPException(status_code=502, detail=f"Database error during {context}") from exc
