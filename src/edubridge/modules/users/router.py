"""Users router."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.core.errors import NotFoundError, to_http_exception
from edubridge.modules.shared.schemas import ApiResponse, ok
from edubridge.modules.users.repository import UserRepository
from edubridge.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[UserResponse]:
    """Return the caller's synchronized user row."""
    row = await UserRepository.get_by_id(db, user.id)
    if row is None:
        # The auth dependency upserts the row, so this only happens if it
        # was removed mid-request.
        raise to_http_exception(NotFoundError("User not found", "USER_NOT_FOUND"))

    return ok(
        UserResponse(
            id=row.id,
            username=row.username,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            phone=row.phone,
            roles=user.roles,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
    )
