"""
Openverse Media Backend API - FastAPI application.

Provides endpoints for:
- Registering, logging in and Google sign-in (JWT sessions)
- The signed-in user's profile and saved searches
- Searching and fetching Openverse images and audio
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import auth, openverse, users

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    Example: CORS_ALLOW_ORIGINS=http://localhost:3000,https://media.example.com
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting up Openverse Media Backend API...")
    missing = [name for name in ("OPENVERSE_CLIENT_ID", "OPENVERSE_CLIENT_SECRET") if not os.getenv(name)]
    if missing:
        # Not fatal: the first Openverse call reports the configuration error.
        logger.warning(f"Openverse credentials not configured: {', '.join(missing)}")
    yield
    logger.info("Shutting down Openverse Media Backend API...")


app = FastAPI(
    title="Openverse Media Backend API",
    description="User accounts, saved searches and an authenticated proxy to the Openverse media API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=f"{API_PREFIX}/docs",
    openapi_url=f"{API_PREFIX}/swagger.json",
)

# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization"],
    expose_headers=["Content-Disposition"],
)

app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(openverse.router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "openverse-backend"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
