from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests

from openverse_backend.utils.env import get_env_str

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = ("openid", "email", "profile")

DEFAULT_CALLBACK_URL = "http://localhost:3000/api/auth/google/callback"
DEFAULT_FRONTEND_URL = "http://localhost:3000"


class GoogleOAuthError(RuntimeError):
    pass


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    first_name: str
    last_name: str

    @classmethod
    def from_userinfo(cls, payload: dict[str, Any]) -> GoogleProfile:
        """
        Build a profile from Google's userinfo payload.

        Names fall back to the display name split, then to "Google" / "User".
        """

        email = payload.get("email")
        if not isinstance(email, str) or not email.strip():
            raise GoogleOAuthError("Google authentication failed: No email provided")

        display = payload.get("name") if isinstance(payload.get("name"), str) else ""
        parts = display.split(" ") if display else []
        first_from_display = parts[0] if parts else ""
        last_from_display = " ".join(parts[1:]) if len(parts) > 1 else ""

        given = payload.get("given_name")
        family = payload.get("family_name")
        first_name = given if isinstance(given, str) and given else (first_from_display or "Google")
        last_name = family if isinstance(family, str) and family else (last_from_display or "User")
        return cls(email=email.strip(), first_name=first_name, last_name=last_name)


def get_frontend_url() -> str:
    return (get_env_str("FRONTEND_URL", DEFAULT_FRONTEND_URL) or DEFAULT_FRONTEND_URL).rstrip("/")


def _client_config() -> tuple[str, str, str]:
    client_id = get_env_str("GOOGLE_CLIENT_ID")
    client_secret = get_env_str("GOOGLE_CLIENT_SECRET")
    if not client_id or not client_secret:
        raise GoogleOAuthError("Google OAuth credentials not configured")
    callback_url = get_env_str("GOOGLE_CALLBACK_URL", DEFAULT_CALLBACK_URL) or DEFAULT_CALLBACK_URL
    return client_id, client_secret, callback_url


def build_authorization_url(*, state: str | None = None) -> str:
    client_id, _secret, callback_url = _client_config()
    params = {
        "client_id": client_id,
        "redirect_uri": callback_url,
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "access_type": "online",
        "prompt": "select_account",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code_for_profile(
    code: str,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = 10.0,
) -> GoogleProfile:
    """
    Trade an authorization code for tokens, then fetch the user's profile.
    """

    if not code:
        raise GoogleOAuthError("Missing authorization code")
    client_id, client_secret, callback_url = _client_config()
    session = session or requests.Session()

    try:
        token_resp = session.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": callback_url,
                "grant_type": "authorization_code",
            },
            headers={"accept": "application/json"},
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise GoogleOAuthError(f"Google token exchange failed: {exc}") from exc
    if token_resp.status_code != 200:
        raise GoogleOAuthError(f"Google token exchange failed with HTTP {token_resp.status_code}.")

    try:
        token_payload = token_resp.json()
    except ValueError as exc:
        raise GoogleOAuthError("Google token endpoint returned non-JSON response.") from exc
    access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
    if not access_token:
        raise GoogleOAuthError("Google token response missing access_token.")

    try:
        info_resp = session.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}", "accept": "application/json"},
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise GoogleOAuthError(f"Google userinfo request failed: {exc}") from exc
    if info_resp.status_code != 200:
        raise GoogleOAuthError(f"Google userinfo request failed with HTTP {info_resp.status_code}.")

    try:
        payload = info_resp.json()
    except ValueError as exc:
        raise GoogleOAuthError("Google userinfo returned non-JSON response.") from exc
    if not isinstance(payload, dict):
        raise GoogleOAuthError("Google userinfo returned unexpected JSON shape (not an object).")
    return GoogleProfile.from_userinfo(payload)
