"""
Authentication router.

Tokens are issued by Keycloak; these endpoints only describe the token the
caller presented. There is no server-side session to end on logout.
"""

import logging

from fastapi import APIRouter, Depends

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.modules.auth.schemas import LogoutData, TokenProfile, VerifyData
from edubridge.modules.shared.schemas import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=ApiResponse[TokenProfile])
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[TokenProfile]:
    """Return the caller's identity and token details."""
    return ok(TokenProfile.from_claims(user.claims, user.roles))


@router.get("/verify", response_model=ApiResponse[VerifyData])
async def verify_token(
    user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[VerifyData]:
    """Confirm that the presented token is valid."""
    return ok(VerifyData(user=TokenProfile.from_claims(user.claims, user.roles)))


@router.post("/logout", response_model=ApiResponse[LogoutData])
async def logout(
    user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[LogoutData]:
    """
    Acknowledge a logout.

    Tokens are stateless; the client discards its token and, if needed,
    ends the Keycloak session itself.
    """
    logger.info(f"User logged out: {user.id}")
    return ok(
        LogoutData(message="Logout successful. Please remove the token from client storage.")
    )
