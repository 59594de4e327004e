"""
Account endpoints: registration, login, token verification and Google sign-in.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field

from api.auth import CurrentUser
from api.deps import SupabaseAdminClient, raise_for_repository_error
from openverse_backend.auth import service
from openverse_backend.auth.google import (
    GoogleOAuthError,
    build_authorization_url,
    exchange_code_for_profile,
    get_frontend_url,
)
from openverse_backend.models.users import UserCreate
from openverse_backend.repositories.users import UserRepositoryError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# --- Pydantic models ---

class RegisterRequest(BaseModel):
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserProfile(BaseModel):
    id: str
    firstName: str
    lastName: str
    email: str
    createdAt: str | None = None
    updatedAt: str | None = None


class AuthResponse(BaseModel):
    message: str
    user: UserProfile
    token: str


class VerifyTokenResponse(BaseModel):
    message: str
    user: UserProfile


# --- Endpoints ---

@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    db: SupabaseAdminClient,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """Register a new user and return a session token."""
    user = UserCreate(
        first_name=body.firstName,
        last_name=body.lastName,
        email=str(body.email),
        password=body.password,
    )
    try:
        profile, token = service.register(db, user, background_tasks=background_tasks)
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "registering user")
    return {"message": "User registered successfully", "user": profile, "token": token}


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: SupabaseAdminClient) -> dict[str, Any]:
    """Log in with email and password."""
    try:
        profile, token = service.login(db, str(body.email), body.password)
    except service.InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=exc.message) from exc
    except UserRepositoryError as exc:
        raise_for_repository_error(exc, "logging in")
    return {"message": "Login successful", "user": profile, "token": token}


@router.get("/verify-token", response_model=VerifyTokenResponse)
def verify_token(user: CurrentUser) -> dict[str, Any]:
    """Confirm the bearer token is valid and return its user."""
    return {"message": "Token is valid", "user": user.public_dict()}


@router.get("/google")
def google_auth() -> RedirectResponse:
    """Redirect to Google's consent screen."""
    try:
        url = build_authorization_url()
    except GoogleOAuthError as exc:
        logger.error(f"Google sign-in unavailable: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RedirectResponse(url, status_code=302)


@router.get("/google/callback")
def google_auth_callback(db: SupabaseAdminClient, code: str | None = None) -> RedirectResponse:
    """Finish Google sign-in and hand the session token to the frontend."""
    frontend_url = get_frontend_url()
    try:
        profile = exchange_code_for_profile(code or "")
        _user, token = service.google_login(db, profile)
    except (GoogleOAuthError, UserRepositoryError) as exc:
        logger.error(f"Google authentication failed: {exc}")
        return RedirectResponse(f"{frontend_url}/login?error=google_auth_failed", status_code=302)
    return RedirectResponse(f"{frontend_url}/login/success?token={quote(token, safe='')}", status_code=302)
