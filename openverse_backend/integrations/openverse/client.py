from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

import requests

from openverse_backend.models.media import (
    AudioSearchRequest,
    ImageSearchRequest,
    MediaKind,
    SearchRequest,
)
from openverse_backend.utils.env import get_env_float, get_env_str

logger = logging.getLogger(__name__)

OPENVERSE_API_BASE_URL = "https://api.openverse.org/v1"
DEFAULT_TOKEN_TTL_SECONDS = 86400
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_REDIRECTS = 5


_REQUEST_TYPES = {
    MediaKind.IMAGE: ImageSearchRequest,
    MediaKind.AUDIO: AudioSearchRequest,
}


class OpenverseClientError(RuntimeError):
    default_status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status_code


class OpenverseConfigurationError(OpenverseClientError):
    """Client id / secret are not configured."""


class OpenverseAuthError(OpenverseClientError):
    """The client-credentials exchange failed."""


class OpenverseRequestError(OpenverseClientError):
    """A search or get-by-id call failed."""


class OpenverseNotFoundError(OpenverseClientError):
    default_status_code = 404


@dataclass(frozen=True)
class CachedCredential:
    bearer_token: str
    expires_at: float  # epoch seconds

    def is_valid(self, now: float) -> bool:
        return bool(self.bearer_token) and now < self.expires_at


def _error_detail(resp: requests.Response) -> str | None:
    try:
        payload = resp.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail.strip():
            return detail
    return None


class OpenverseClient:
    """
    Proxy client for the Openverse media API.

    Holds a single cached client-credentials token per instance. There is no
    lock around the cache: concurrent callers that see an empty or expired
    credential may each re-authenticate, and the last write wins.
    """

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str = OPENVERSE_API_BASE_URL,
        session: requests.Session | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client_id = (client_id or "").strip() or None
        self._client_secret = (client_secret or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.max_redirects = max_redirects
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._credential: CachedCredential | None = None

    @classmethod
    def from_env(cls, *, session: requests.Session | None = None) -> OpenverseClient:
        """
        Build a client from `OPENVERSE_*` env vars.

        Missing credentials are not an error here; they surface on the first
        call that needs a token.
        """

        return cls(
            client_id=get_env_str("OPENVERSE_CLIENT_ID"),
            client_secret=get_env_str("OPENVERSE_CLIENT_SECRET"),
            base_url=get_env_str("OPENVERSE_API_BASE_URL", OPENVERSE_API_BASE_URL) or OPENVERSE_API_BASE_URL,
            session=session,
            timeout_seconds=get_env_float("OPENVERSE_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        )

    @property
    def credential(self) -> CachedCredential | None:
        return self._credential

    def authenticate(self) -> str:
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential.bearer_token

        if not self._client_id or not self._client_secret:
            logger.error("Openverse API credentials not configured (OPENVERSE_CLIENT_ID / OPENVERSE_CLIENT_SECRET).")
            raise OpenverseConfigurationError("Openverse API credentials not configured")

        url = f"{self._base_url}/auth_tokens/token/"
        body = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "client_credentials",
        }
        try:
            resp = self._session.post(
                url,
                json=body,
                headers={"Content-Type": "application/json", "accept": "application/json"},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.exception(f"Failed to authenticate with Openverse API: {exc}")
            raise OpenverseAuthError("Failed to authenticate with Openverse API") from exc

        if not resp.ok:
            logger.error(
                f"Failed to authenticate with Openverse API: HTTP {resp.status_code} {(resp.text or '')[:400]}"
            )
            raise OpenverseAuthError("Failed to authenticate with Openverse API")

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("Openverse token endpoint returned non-JSON response.")
            raise OpenverseAuthError("Failed to authenticate with Openverse API") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Openverse token response is missing access_token.")
            raise OpenverseAuthError("Failed to authenticate with Openverse API")

        expires_in = payload.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError) as exc:
            logger.error(f"Openverse token response has a non-numeric expires_in: {expires_in!r}")
            raise OpenverseAuthError("Failed to authenticate with Openverse API") from exc
        self._credential = CachedCredential(
            bearer_token=token,
            expires_at=self._clock() + lifetime,
        )
        logger.info(f"Acquired Openverse access token (expires in {expires_in}s).")
        return token

    def _auth_headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "Authorization": f"Bearer {self.authenticate()}",
        }

    def search(self, kind: MediaKind, request: SearchRequest) -> dict[str, Any]:
        """
        Search an Openverse collection and return the paginated payload unchanged.
        """

        kind = MediaKind(kind)
        if not isinstance(request, _REQUEST_TYPES[kind]):
            raise ValueError(f"{type(request).__name__} cannot be used to search {kind.value}.")
        fallback = f"Failed to search {'images' if kind is MediaKind.IMAGE else 'audio'}"
        headers = self._auth_headers()
        url = f"{self._base_url}/{kind.value}/"

        try:
            resp = self._session.get(
                url,
                params=request.to_query_params(),
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.exception(f"{fallback}: {exc}")
            raise OpenverseRequestError(fallback) from exc

        if not resp.ok:
            detail = _error_detail(resp)
            logger.error(f"{fallback}: HTTP {resp.status_code} {detail or ''}".rstrip())
            raise OpenverseRequestError(detail or fallback, status_code=resp.status_code)

        return self._decode(resp, fallback)

    def get_by_id(self, kind: MediaKind, media_id: str) -> dict[str, Any]:
        kind = MediaKind(kind)
        media_id = str(media_id or "").strip()
        if not media_id:
            raise ValueError(f"{kind.display_name} id is empty.")

        fallback = f"Failed to get {kind.label}"
        headers = self._auth_headers()
        url = f"{self._base_url}/{kind.value}/{quote(media_id, safe='')}/"

        try:
            resp = self._session.get(url, headers=headers, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            logger.exception(f"{fallback}: {exc}")
            raise OpenverseRequestError(fallback) from exc

        if resp.status_code == 404:
            raise OpenverseNotFoundError(f"{kind.display_name} not found")
        if not resp.ok:
            logger.error(f"{fallback}: HTTP {resp.status_code} {(resp.text or '')[:400]}")
            raise OpenverseRequestError(fallback)

        return self._decode(resp, fallback)

    @staticmethod
    def _decode(resp: requests.Response, fallback: str) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error(f"{fallback}: Openverse returned non-JSON response.")
            raise OpenverseRequestError(fallback) from exc
        if not isinstance(payload, dict):
            logger.error(f"{fallback}: unexpected JSON shape (not an object).")
            raise OpenverseRequestError(fallback)
        return payload

    def search_images(self, request: ImageSearchRequest) -> dict[str, Any]:
        return self.search(MediaKind.IMAGE, request)

    def search_audio(self, request: AudioSearchRequest) -> dict[str, Any]:
        return self.search(MediaKind.AUDIO, request)

    def get_image(self, media_id: str) -> dict[str, Any]:
        return self.get_by_id(MediaKind.IMAGE, media_id)

    def get_audio(self, media_id: str) -> dict[str, Any]:
        return self.get_by_id(MediaKind.AUDIO, media_id)
