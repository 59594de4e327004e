from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import BackgroundTasks
from supabase import Client

from openverse_backend.auth.email import schedule_registration_email
from openverse_backend.auth.google import GoogleProfile
from openverse_backend.auth.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from openverse_backend.models.users import UserCreate, UserRecord
from openverse_backend.repositories.users import find_user_by_email, find_user_by_id, insert_user

logger = logging.getLogger(__name__)


class InvalidCredentialsError(RuntimeError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)
        self.message = message


def _issue_token(user: UserRecord) -> str:
    return create_access_token(user.id, user.email)


def register(
    db: Client,
    user: UserCreate,
    *,
    background_tasks: BackgroundTasks | None = None,
) -> tuple[dict[str, Any], str]:
    """
    Create the account, issue a session token and queue the welcome email.

    Raises UserAlreadyExistsError when the email is taken.
    """

    row = insert_user(db, user, password_hash=hash_password(user.password))
    record = UserRecord.from_row(row)
    token = _issue_token(record)
    schedule_registration_email(background_tasks, record.email, record.first_name)
    logger.info(f"Registered user {record.id}")
    return record.public_dict(), token


def login(db: Client, email: str, password: str) -> tuple[dict[str, Any], str]:
    row = find_user_by_email(db, email)
    if row is None:
        raise InvalidCredentialsError()
    record = UserRecord.from_row(row)
    if not verify_password(password, record.password_hash):
        raise InvalidCredentialsError()
    return record.public_dict(), _issue_token(record)


def resolve_user_from_token(db: Client, token: str) -> UserRecord:
    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        raise InvalidCredentialsError("Invalid token") from exc

    row = find_user_by_id(db, claims["sub"])
    if row is None:
        raise InvalidCredentialsError("Invalid token")
    return UserRecord.from_row(row)


def google_login(db: Client, profile: GoogleProfile) -> tuple[dict[str, Any], str]:
    """
    Find or create the user behind a Google profile and issue a session token.

    New accounts get a random password, so only Google sign-in works for them
    until they reset it.
    """

    row = find_user_by_email(db, profile.email)
    if row is None:
        password = secrets.token_urlsafe(24)
        row = insert_user(
            db,
            UserCreate(
                first_name=profile.first_name,
                last_name=profile.last_name,
                email=profile.email,
                password=password,
            ),
            password_hash=hash_password(password),
        )
        logger.info(f"Created user from Google profile: {profile.email}")
    record = UserRecord.from_row(row)
    return record.public_dict(), _issue_token(record)
