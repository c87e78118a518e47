"""Authentication schemas."""

from datetime import UTC, datetime
from typing import Any

from edubridge.modules.shared.schemas import CamelModel


def _timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


class TokenProfile(CamelModel):
    """Identity and token details taken from the verified claims."""

    id: str
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    name: str | None = None
    email_verified: bool | None = None
    roles: list[str] = []
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    auth_time: datetime | None = None
    issuer: str | None = None
    audience: str | list[str] | None = None
    client_id: str | None = None
    session_id: str | None = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any], roles: list[str]) -> "TokenProfile":
        return cls(
            id=claims["sub"],
            username=claims.get("preferred_username"),
            email=claims.get("email"),
            first_name=claims.get("given_name"),
            last_name=claims.get("family_name"),
            phone_number=claims.get("phone_number"),
            name=claims.get("name"),
            email_verified=claims.get("email_verified"),
            roles=roles,
            issued_at=_timestamp(claims.get("iat")),
            expires_at=_timestamp(claims.get("exp")),
            auth_time=_timestamp(claims.get("auth_time")),
            issuer=claims.get("iss"),
            audience=claims.get("aud"),
            client_id=claims.get("azp"),
            session_id=claims.get("sid"),
        )


class VerifyData(CamelModel):
    message: str = "Token is valid"
    user: TokenProfile


class LogoutData(CamelModel):
    message: str
