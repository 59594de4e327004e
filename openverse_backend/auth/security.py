"""
Password hashing and JWT issuance for end-user sessions.

These tokens authenticate *our* users; they are unrelated to the
client-credentials token used against Openverse.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_EXPIRES_HOURS = 24

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(RuntimeError):
    pass


def get_jwt_secret() -> str:
    secret = (os.getenv("JWT_SECRET") or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET environment variable is not set")
    return secret


def get_token_lifetime() -> timedelta:
    raw = (os.getenv("JWT_EXPIRES_HOURS") or "").strip()
    try:
        hours = float(raw) if raw else DEFAULT_EXPIRES_HOURS
    except ValueError:
        logger.warning(f"Ignoring invalid JWT_EXPIRES_HOURS={raw!r}")
        hours = DEFAULT_EXPIRES_HOURS
    return timedelta(hours=hours)


def _truncate_for_bcrypt(password: str) -> str:
    # bcrypt only looks at the first 72 bytes.
    encoded = password.encode("utf-8")
    if len(encoded) <= 72:
        return password
    return encoded[:72].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return str(pwd_context.hash(_truncate_for_bcrypt(password)))


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bool(pwd_context.verify(_truncate_for_bcrypt(password), password_hash))
    except ValueError:
        # Unrecognized hash format.
        return False


def create_access_token(
    subject: str,
    email: str,
    *,
    expires_delta: timedelta | None = None,
    secret: str | None = None,
) -> str:
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": str(subject),
        "email": email,
        "iat": now,
        "exp": now + (expires_delta or get_token_lifetime()),
    }
    return str(jwt.encode(claims, secret or get_jwt_secret(), algorithm=ALGORITHM))


def decode_access_token(token: str, *, secret: str | None = None) -> dict[str, Any]:
    """
    Verify signature and expiry, returning the claims.

    Raises InvalidTokenError for any malformed, tampered or expired token.
    """

    try:
        payload = jwt.decode(token, secret or get_jwt_secret(), algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc
    if not isinstance(payload, dict) or not payload.get("sub"):
        raise InvalidTokenError("Invalid token")
    return payload
