"""
Authentication Module

Provides the authentication dependency for FastAPI endpoints. Tokens are
issued by Keycloak and verified in security.py; every successful request
upserts the caller's user row from the token claims.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- PYTHON_ENV defaults to production; test tokens need it set explicitly
- The is_production check provides an additional safety layer
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.config import settings
from edubridge.core.database import get_db
from edubridge.core.security import decode_token
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes a 401 instead of FastAPI's 403
security = HTTPBearer(
    auto_error=False,
    description="Keycloak access token",
)


@dataclass
class CurrentUser:
    """
    Represents the authenticated caller.

    Populated from verified token claims.

    Attributes:
        id: Token subject (also the users table primary key)
        username: preferred_username claim
        email: email claim
        first_name: given_name claim
        last_name: family_name claim
        phone: phone_number claim
        roles: Realm roles
        claims: The full verified claim set
    """

    id: str
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    roles: list[str] = field(default_factory=list)
    claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "CurrentUser":
        return cls(
            id=claims["sub"],
            username=claims.get("preferred_username"),
            email=claims.get("email"),
            first_name=claims.get("given_name"),
            last_name=claims.get("family_name"),
            phone=claims.get("phone_number"),
            roles=list((claims.get("realm_access") or {}).get("roles", [])),
            claims=claims,
        )

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, username={self.username})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    All of these must hold:
    1. settings.is_development is True (PYTHON_ENV=development)
    2. settings.is_production is False
    3. PYTHON_ENV environment variable is not "production" or "staging"

    Returns:
        True only if ALL safety checks pass
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var != "production"
        and env_var != "staging"
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_token(token: str) -> CurrentUser:
    """
    Validate a bearer token and extract the caller.

    Args:
        token: JWT from the Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If the token is invalid, expired or issued for
            another client
    """
    # In development mode, UUID tokens are accepted as user IDs
    if _DEVELOPMENT_MODE:
        try:
            user_id = str(UUID(token))
            logger.debug("Development mode: using UUID token as user id")
            return CurrentUser(
                id=user_id,
                username=f"dev-{user_id[:8]}",
                email=f"dev-{user_id[:8]}@edubridge.dev",
                first_name="Dev",
                last_name=user_id[:8],
                claims={"sub": user_id, "azp": "development"},
            )
        except ValueError:
            pass

    payload = await decode_token(token)

    if payload is None:
        raise _unauthorized("INVALID_TOKEN", "Token verification failed")

    if not payload.get("sub"):
        logger.warning("Token has no 'sub' claim")
        raise _unauthorized("INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims.")

    client_id = payload.get("azp")
    if client_id not in settings.allowed_clients_list:
        logger.warning(f"Token issued for unexpected client: {client_id}")
        raise _unauthorized("INVALID_TOKEN_CLIENT", "Token not issued for this application")

    return CurrentUser.from_claims(payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    FastAPI dependency that authenticates the request.

    Verifies the bearer token, then upserts the caller's user row so that
    foreign keys to users always resolve.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: CurrentUser = Depends(get_current_user)):
            # user.id, user.email, user.roles are available

    Raises:
        HTTPException 401: If the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("MISSING_TOKEN", "Authorization header is required")

    user = await _validate_token(credentials.credentials)

    await UserRepository.upsert_from_claims(
        db,
        user_id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
    )
    await db.commit()

    logger.debug(f"Authenticated user: {user.id}")
    return user


__all__ = [
    "CurrentUser",
    "get_current_user",
]
