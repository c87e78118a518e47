"""
Token Verification

Verifies Keycloak-issued RS256 access tokens against the realm's public
keys (JWKS). Keys are fetched with httpx and cached in-process; an unknown
key id forces a single refresh to pick up key rotation.
"""

import logging
import time
from typing import Any

import httpx
from jose import JWTError, jwt

from edubridge.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]
JWKS_REQUEST_TIMEOUT_SECONDS = 5.0


class JWKSCache:
    """In-process cache of the issuer's signing keys, indexed by ``kid``."""

    def __init__(self, jwks_url: str, ttl_seconds: int):
        self.jwks_url = jwks_url
        self.ttl_seconds = ttl_seconds
        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at: float = 0.0

    @property
    def is_stale(self) -> bool:
        return not self._keys or (time.monotonic() - self._fetched_at) > self.ttl_seconds

    async def refresh(self) -> None:
        """Fetch the JWKS document and replace the cached keys."""
        async with httpx.AsyncClient(timeout=JWKS_REQUEST_TIMEOUT_SECONDS) as client:
            response = await client.get(self.jwks_url)
            response.raise_for_status()
            document = response.json()

        self._keys = {key["kid"]: key for key in document.get("keys", []) if "kid" in key}
        self._fetched_at = time.monotonic()
        logger.info(f"Loaded {len(self._keys)} signing keys from {self.jwks_url}")

    async def get_key(self, kid: str) -> dict[str, Any] | None:
        """Return the JWK for ``kid``, refreshing once if it is missing."""
        if self.is_stale:
            await self.refresh()

        key = self._keys.get(kid)
        if key is None:
            await self.refresh()
            key = self._keys.get(kid)
        return key

    def clear(self) -> None:
        self._keys = {}
        self._fetched_at = 0.0


jwks_cache = JWKSCache(settings.keycloak_jwks_url, settings.jwks_cache_seconds)


async def decode_token(token: str) -> dict[str, Any] | None:
    """
    Verify a bearer token and return its claims.

    Checks signature, algorithm, expiry and issuer. Audience is not checked
    here (Keycloak access tokens carry ``aud=account``); callers check the
    ``azp`` claim instead.

    Args:
        token: Encoded JWT from the Authorization header

    Returns:
        Claims dict, or None if the token cannot be verified
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        logger.warning(f"Malformed token header: {e}")
        return None

    kid = header.get("kid")
    if not kid:
        logger.warning("Token header has no 'kid'")
        return None

    try:
        key = await jwks_cache.get_key(kid)
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch signing keys: {e}")
        return None

    if key is None:
        logger.warning(f"No signing key found for kid={kid}")
        return None

    try:
        return jwt.decode(
            token,
            key,
            algorithms=ALGORITHMS,
            issuer=settings.keycloak_issuer,
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        return None


__all__ = ["JWKSCache", "jwks_cache", "decode_token"]
