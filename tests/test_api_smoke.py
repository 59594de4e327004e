"""
Smoke tests for the Openverse media backend API.

These tests verify routing, the auth guard and error mapping without a live
database or upstream; Supabase and the Openverse client are overridden.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api import auth, deps
from api.main import app
from openverse_backend.integrations.openverse.client import (
    OpenverseAuthError,
    OpenverseConfigurationError,
    OpenverseNotFoundError,
    OpenverseRequestError,
)
from openverse_backend.models.media import MediaKind
from openverse_backend.models.users import UserRecord

MOCK_USER = UserRecord(
    id="11111111-1111-1111-1111-111111111111",
    first_name="John",
    last_name="Doe",
    email="john.doe@example.com",
    password_hash="hash",
)

MOCK_IMAGE_LIST = {
    "result_count": 2,
    "page_count": 1,
    "page_size": 20,
    "page": 1,
    "results": [
        {"id": "image1", "title": "Test Image 1", "url": "http://example.com/image1.jpg", "license": "by"},
        {"id": "image2", "title": "Test Image 2", "url": "http://example.com/image2.jpg", "license": "by-sa"},
    ],
}

MOCK_AUDIO = {
    "id": "audio1",
    "title": "Test Audio",
    "duration": 180000,
    "genres": ["classical"],
    "license": "cc0",
    "unknown_upstream_field": {"kept": True},
}


class _StubOpenverse:
    def __init__(self) -> None:
        self.search_calls: list[tuple[MediaKind, Any]] = []
        self.get_calls: list[tuple[MediaKind, str]] = []
        self.search_result: dict[str, Any] | Exception = MOCK_IMAGE_LIST
        self.get_result: dict[str, Any] | Exception = MOCK_AUDIO

    def search(self, kind: MediaKind, request: Any) -> dict[str, Any]:
        self.search_calls.append((kind, request))
        if isinstance(self.search_result, Exception):
            raise self.search_result
        return self.search_result

    def get_by_id(self, kind: MediaKind, media_id: str) -> dict[str, Any]:
        self.get_calls.append((kind, media_id))
        if isinstance(self.get_result, Exception):
            raise self.get_result
        return self.get_result


@pytest.fixture
def openverse_stub() -> _StubOpenverse:
    return _StubOpenverse()


@pytest.fixture
def client(openverse_stub: _StubOpenverse):
    """Create a test client with mocked Supabase and Openverse, signed in as MOCK_USER."""
    app.dependency_overrides[deps.get_supabase_admin_client] = lambda: MagicMock()
    app.dependency_overrides[deps.get_openverse_client] = lambda: openverse_stub
    app.dependency_overrides[auth.require_user] = lambda: MOCK_USER
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(openverse_stub: _StubOpenverse):
    """Test client without the auth override, so the real guard runs."""
    app.dependency_overrides[deps.get_supabase_admin_client] = lambda: MagicMock()
    app.dependency_overrides[deps.get_openverse_client] = lambda: openverse_stub
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_returns_ok(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "openverse-backend"}

    def test_health_returns_healthy(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAuthGuard:
    """Protected routes reject requests without a valid bearer token."""

    @pytest.mark.parametrize(
        "path",
        [
            "/api/openverse/images?q=mountain",
            "/api/openverse/audio/abc",
            "/api/users/profile",
            "/api/users/saved-searches",
            "/api/auth/verify-token",
        ],
    )
    def test_missing_token_returns_401(self, anonymous_client: TestClient, path: str):
        response = anonymous_client.get(path)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_returns_401(self, anonymous_client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from openverse_backend.auth.service import InvalidCredentialsError

        def _reject(_db, _token):
            raise InvalidCredentialsError("Invalid token")

        monkeypatch.setattr(auth, "resolve_user_from_token", _reject)
        response = anonymous_client.get("/api/users/profile", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    def test_valid_token_resolves_user(self, anonymous_client: TestClient, monkeypatch: pytest.MonkeyPatch):
        seen: list[str] = []

        def _resolve(_db, token):
            seen.append(token)
            return MOCK_USER

        monkeypatch.setattr(auth, "resolve_user_from_token", _resolve)
        response = anonymous_client.get("/api/auth/verify-token", headers={"Authorization": "Bearer good"})
        assert response.status_code == 200
        assert response.json()["message"] == "Token is valid"
        assert response.json()["user"]["email"] == "john.doe@example.com"
        assert seen == ["good"]


class TestOpenverseEndpoints:
    """Test Openverse proxy endpoints with a stubbed client."""

    def test_search_images_passes_result_through(self, client: TestClient, openverse_stub: _StubOpenverse):
        response = client.get("/api/openverse/images", params={"q": "mountain", "license": "by-sa"})

        assert response.status_code == 200
        assert response.json() == MOCK_IMAGE_LIST
        kind, request = openverse_stub.search_calls[0]
        assert kind is MediaKind.IMAGE
        assert request.to_query_params() == {"q": "mountain", "page": "1", "page_size": "20", "license": "by-sa"}

    def test_search_audio_builds_audio_request(self, client: TestClient, openverse_stub: _StubOpenverse):
        openverse_stub.search_result = {"result_count": 0, "page_count": 0, "page_size": 5, "page": 2, "results": []}

        response = client.get(
            "/api/openverse/audio",
            params={"q": "piano", "page": 2, "page_size": 5, "genres": "classical", "duration": "0-300"},
        )

        assert response.status_code == 200
        kind, request = openverse_stub.search_calls[0]
        assert kind is MediaKind.AUDIO
        assert request.genres == "classical"
        assert request.duration == "0-300"

    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"q": ""},
            {"q": "x", "page": 0},
            {"q": "x", "page_size": 101},
            {"q": "x", "license": "all-rights-reserved"},
            {"q": "x", "category": "sculpture"},
        ],
    )
    def test_search_images_validates_query(
        self, client: TestClient, openverse_stub: _StubOpenverse, params: dict[str, Any]
    ):
        response = client.get("/api/openverse/images", params=params)
        assert response.status_code == 422
        assert openverse_stub.search_calls == []

    def test_blank_query_is_rejected_before_upstream(self, client: TestClient, openverse_stub: _StubOpenverse):
        response = client.get("/api/openverse/audio", params={"q": "   "})

        assert response.status_code == 400
        assert "non-empty" in response.json()["detail"]
        assert openverse_stub.search_calls == []

    def test_search_upstream_error_keeps_status_and_detail(
        self, client: TestClient, openverse_stub: _StubOpenverse
    ):
        openverse_stub.search_result = OpenverseRequestError("Bad request", status_code=400)

        response = client.get("/api/openverse/images", params={"q": "test"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Bad request"}

    @pytest.mark.parametrize(
        "error",
        [
            OpenverseConfigurationError("Openverse API credentials not configured"),
            OpenverseAuthError("Failed to authenticate with Openverse API"),
        ],
    )
    def test_configuration_and_auth_errors_are_500(
        self, client: TestClient, openverse_stub: _StubOpenverse, error: Exception
    ):
        openverse_stub.search_result = error

        response = client.get("/api/openverse/audio", params={"q": "piano"})

        assert response.status_code == 500
        assert response.json()["detail"] == str(error)

    def test_get_audio_passes_unknown_fields_through(self, client: TestClient, openverse_stub: _StubOpenverse):
        response = client.get("/api/openverse/audio/audio1")

        assert response.status_code == 200
        assert response.json() == MOCK_AUDIO
        assert openverse_stub.get_calls == [(MediaKind.AUDIO, "audio1")]

    def test_get_image_not_found_returns_404(self, client: TestClient, openverse_stub: _StubOpenverse):
        openverse_stub.get_result = OpenverseNotFoundError("Image not found")

        response = client.get("/api/openverse/images/nonexistent")

        assert response.status_code == 404
        assert response.json() == {"detail": "Image not found"}


class TestUsersEndpoints:
    """Profile and saved-search endpoints with the repository monkeypatched."""

    def test_profile_hides_password_hash(self, client: TestClient):
        response = client.get("/api/users/profile")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == MOCK_USER.id
        assert body["firstName"] == "John"
        assert "password_hash" not in body

    def test_saved_search_round_trip(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import users as users_router

        stored: list[dict[str, Any]] = []

        def _add(_db, user_id, search):
            assert user_id == MOCK_USER.id
            stored.append({**search.to_row(), "createdAt": "2025-01-01T00:00:00+00:00"})
            return list(stored)

        monkeypatch.setattr(users_router, "add_saved_search", _add)
        monkeypatch.setattr(users_router, "get_saved_searches", lambda _db, _uid: list(stored))

        created = client.post(
            "/api/users/saved-searches",
            json={"type": "image", "query": "mountain", "filters": {"license": "by"}},
        )
        listed = client.get("/api/users/saved-searches")

        assert created.status_code == 201
        assert created.json() == [
            {"type": "image", "query": "mountain", "filters": {"license": "by"}, "createdAt": "2025-01-01T00:00:00+00:00"}
        ]
        assert listed.json() == created.json()

    @pytest.mark.parametrize(
        "body",
        [
            {"type": "video", "query": "x"},
            {"type": "image", "query": ""},
            {"query": "x"},
        ],
    )
    def test_create_saved_search_validates_body(self, client: TestClient, body: dict[str, Any]):
        response = client.post("/api/users/saved-searches", json=body)
        assert response.status_code == 422

    def test_delete_saved_search_out_of_range_returns_404(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import users as users_router
        from openverse_backend.repositories.users import SavedSearchNotFoundError

        def _delete(_db, _uid, _index):
            raise SavedSearchNotFoundError()

        monkeypatch.setattr(users_router, "delete_saved_search", _delete)

        response = client.delete("/api/users/saved-searches/7")

        assert response.status_code == 404
        assert response.json() == {"detail": "Saved search not found"}

    def test_repository_failure_returns_502(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import users as users_router
        from openverse_backend.repositories.users import UserRepositoryError

        def _fail(_db, _uid):
            raise UserRepositoryError("Supabase error during finding user by id: boom")

        monkeypatch.setattr(users_router, "get_saved_searches", _fail)

        response = client.get("/api/users/saved-searches")

        assert response.status_code == 502
        assert "boom" not in response.json()["detail"]


class TestAuthEndpoints:
    """Registration / login endpoints with the auth service monkeypatched."""

    PROFILE = MOCK_USER.public_dict()

    def test_register_returns_201(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router

        captured: dict[str, Any] = {}

        def _register(_db, user, *, background_tasks=None):
            captured["user"] = user
            return self.PROFILE, "jwt-token"

        monkeypatch.setattr(auth_router.service, "register", _register)

        response = client.post(
            "/api/auth/register",
            json={"firstName": "John", "lastName": "Doe", "email": "john.doe@example.com", "password": "password123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["token"] == "jwt-token"
        assert body["user"]["email"] == "john.doe@example.com"
        assert captured["user"].password == "password123"

    def test_register_duplicate_returns_409(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router
        from openverse_backend.repositories.users import UserAlreadyExistsError

        def _register(_db, _user, *, background_tasks=None):
            raise UserAlreadyExistsError()

        monkeypatch.setattr(auth_router.service, "register", _register)

        response = client.post(
            "/api/auth/register",
            json={"firstName": "John", "lastName": "Doe", "email": "john.doe@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json() == {"detail": "Email already exists"}

    @pytest.mark.parametrize(
        "body",
        [
            {"firstName": "John", "lastName": "Doe", "email": "not-an-email", "password": "password123"},
            {"firstName": "John", "lastName": "Doe", "email": "john@example.com", "password": "12345"},
            {"lastName": "Doe", "email": "john@example.com", "password": "password123"},
        ],
    )
    def test_register_validates_body(self, client: TestClient, body: dict[str, Any]):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 422

    def test_login_invalid_credentials_returns_401(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router

        def _login(_db, _email, _password):
            raise auth_router.service.InvalidCredentialsError()

        monkeypatch.setattr(auth_router.service, "login", _login)

        response = client.post("/api/auth/login", json={"email": "john@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials"}

    def test_login_success(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router

        monkeypatch.setattr(auth_router.service, "login", lambda _db, _e, _p: (self.PROFILE, "jwt-token"))

        response = client.post("/api/auth/login", json={"email": "john.doe@example.com", "password": "password123"})

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["token"] == "jwt-token"

    def test_google_callback_redirects_with_token(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router
        from openverse_backend.auth.google import GoogleProfile

        monkeypatch.setenv("FRONTEND_URL", "http://frontend.test")
        monkeypatch.setattr(
            auth_router,
            "exchange_code_for_profile",
            lambda code: GoogleProfile(email="g@example.com", first_name="G", last_name="U"),
        )
        monkeypatch.setattr(auth_router.service, "google_login", lambda _db, _profile: (self.PROFILE, "a.b.c"))

        response = client.get("/api/auth/google/callback", params={"code": "xyz"}, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "http://frontend.test/login/success?token=a.b.c"

    def test_google_callback_failure_redirects_to_login(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        from api.routers import auth as auth_router
        from openverse_backend.auth.google import GoogleOAuthError

        def _fail(code):
            raise GoogleOAuthError("Google token exchange failed with HTTP 400.")

        monkeypatch.setenv("FRONTEND_URL", "http://frontend.test")
        monkeypatch.setattr(auth_router, "exchange_code_for_profile", _fail)

        response = client.get("/api/auth/google/callback", params={"code": "bad"}, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "http://frontend.test/login?error=google_auth_failed"
