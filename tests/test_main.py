"""
Application-level tests: operational endpoints, authentication and the
error envelope.
"""

import pytest
from fastapi.testclient import TestClient

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.main import app


@pytest.fixture
def client(mock_db):
    async def override_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestOperationalEndpoints:
    """Tests for unauthenticated endpoints."""

    def test_hello(self, client):
        response = client.get("/api/hello")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {"message": "Hello from EduBridge API"},
            "error": None,
        }

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestAuthentication:
    """Tests for the bearer token dependency."""

    @pytest.mark.parametrize(
        "path",
        ["/api/threads", "/api/users/me", "/api/classes", "/api/schools", "/api/auth/profile"],
    )
    def test_missing_token_is_401(self, client, path):
        response = client.get(path)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "MISSING_TOKEN"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_profile_from_claims(self, client):
        claims = {
            "sub": "user-1",
            "preferred_username": "ama",
            "email": "ama@school.test",
            "given_name": "Ama",
            "family_name": "Mensah",
            "azp": "edu-bridge-frontend",
            "realm_access": {"roles": ["teacher"]},
        }
        app.dependency_overrides[get_current_user] = lambda: CurrentUser.from_claims(claims)

        response = client.get("/api/auth/profile")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "ama@school.test"
        assert data["roles"] == ["teacher"]

    def test_logout_acknowledged(self, client):
        app.dependency_overrides[get_current_user] = lambda: CurrentUser(id="user-1")

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert "Logout successful" in response.json()["data"]["message"]
