"""
Unit tests for the authentication dependency.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from edubridge.core import auth
from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.config import Settings

CLAIMS = {
    "sub": "kc-user-1",
    "preferred_username": "kwame",
    "email": "kwame@school.test",
    "given_name": "Kwame",
    "family_name": "Boateng",
    "azp": "edu-bridge-frontend",
    "realm_access": {"roles": ["parent", "offline_access"]},
}


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestCurrentUserFromClaims:
    """Tests for CurrentUser.from_claims."""

    def test_maps_claims(self):
        user = CurrentUser.from_claims(CLAIMS)

        assert user.id == "kc-user-1"
        assert user.first_name == "Kwame"
        assert user.roles == ["parent", "offline_access"]

    def test_missing_realm_access(self):
        user = CurrentUser.from_claims({"sub": "kc-user-2"})

        assert user.roles == []
        assert user.email is None


class TestGetCurrentUser:
    """Tests for get_current_user."""

    @pytest.mark.asyncio
    async def test_missing_credentials(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None, mock_db)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "MISSING_TOKEN"

    @pytest.mark.asyncio
    async def test_valid_token_upserts_user(self, mock_db):
        with (
            patch("edubridge.core.auth.decode_token", AsyncMock(return_value=CLAIMS)),
            patch("edubridge.core.auth.UserRepository") as mock_users,
        ):
            mock_users.upsert_from_claims = AsyncMock()

            user = await get_current_user(_bearer("header.payload.signature"), mock_db)

        assert user.id == "kc-user-1"
        kwargs = mock_users.upsert_from_claims.call_args.kwargs
        assert kwargs["user_id"] == "kc-user-1"
        assert kwargs["email"] == "kwame@school.test"
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_unverifiable_token(self, mock_db):
        with patch("edubridge.core.auth.decode_token", AsyncMock(return_value=None)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(_bearer("not-a-jwt"), mock_db)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_token_for_other_client(self, mock_db):
        claims = {**CLAIMS, "azp": "some-other-app"}
        with patch("edubridge.core.auth.decode_token", AsyncMock(return_value=claims)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(_bearer("header.payload.signature"), mock_db)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLIENT"

    @pytest.mark.asyncio
    async def test_token_without_subject(self, mock_db):
        claims = {k: v for k, v in CLAIMS.items() if k != "sub"}
        with patch("edubridge.core.auth.decode_token", AsyncMock(return_value=claims)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(_bearer("header.payload.signature"), mock_db)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLAIMS"

    @pytest.mark.asyncio
    async def test_development_uuid_token(self, mock_db):
        user_id = "5f0c8e0a-3b7e-4c1e-9a55-0d6f1c2b9e11"
        with (
            patch.object(auth, "_DEVELOPMENT_MODE", True),
            patch("edubridge.core.auth.decode_token", AsyncMock()) as mock_decode,
            patch("edubridge.core.auth.UserRepository") as mock_users,
        ):
            mock_users.upsert_from_claims = AsyncMock()

            user = await get_current_user(_bearer(user_id), mock_db)

        assert user.id == user_id
        mock_decode.assert_not_called()

    @pytest.mark.asyncio
    async def test_uuid_token_verified_outside_development(self, mock_db):
        user_id = "5f0c8e0a-3b7e-4c1e-9a55-0d6f1c2b9e11"
        with (
            patch.object(auth, "_DEVELOPMENT_MODE", False),
            patch("edubridge.core.auth.decode_token", AsyncMock(return_value=None)),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(_bearer(user_id), mock_db)

        assert exc_info.value.status_code == 401


class TestDevelopmentModeSwitch:
    """Tests for enabling the development token bypass."""

    def test_settings_default_to_production(self, monkeypatch):
        monkeypatch.delenv("PYTHON_ENV", raising=False)

        defaults = Settings(_env_file=None)

        assert defaults.is_production is True
        assert defaults.is_development is False

    @pytest.mark.asyncio
    async def test_uuid_token_rejected_when_env_unset(self, monkeypatch, mock_db):
        monkeypatch.delenv("PYTHON_ENV", raising=False)
        with patch.object(auth, "settings", Settings(_env_file=None)):
            dev_mode = auth._is_dev_mode_safe()

        assert dev_mode is False

        user_id = "5f0c8e0a-3b7e-4c1e-9a55-0d6f1c2b9e11"
        with (
            patch.object(auth, "_DEVELOPMENT_MODE", dev_mode),
            patch("edubridge.core.auth.decode_token", AsyncMock(return_value=None)),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(_bearer(user_id), mock_db)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN"

    def test_enabled_only_when_env_is_development(self, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "development")
        with patch.object(auth, "settings", Settings(_env_file=None)):
            assert auth._is_dev_mode_safe() is True

        monkeypatch.setenv("PYTHON_ENV", "staging")
        with patch.object(auth, "settings", Settings(_env_file=None)):
            assert auth._is_dev_mode_safe() is False
