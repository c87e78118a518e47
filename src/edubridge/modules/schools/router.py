"""
Schools Router

- GET /schools - List schools accessible to the caller
- GET /schools/{school_id}/users - List people in a school to start a chat with
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, to_http_exception
from edubridge.modules.messaging import service as messaging_service
from edubridge.modules.messaging.schemas import SchoolUserListData
from edubridge.modules.schools import service
from edubridge.modules.schools.schemas import SchoolListData
from edubridge.modules.shared.schemas import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ApiResponse[SchoolListData])
async def list_schools(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[SchoolListData]:
    """List schools the caller can access, sorted by name."""
    schools = await service.get_user_schools(db, user.id)
    return ok(SchoolListData(schools=schools, count=len(schools)))


@router.get("/{school_id}/users", response_model=ApiResponse[SchoolUserListData])
async def list_school_users(
    school_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[SchoolUserListData]:
    """List the other users of a school (for finding people to chat with)."""
    try:
        users = await messaging_service.get_school_users(db, school_id, user.id)
    except ServiceError as e:
        logger.warning(f"School users lookup rejected: {e.message}")
        raise to_http_exception(e) from e

    return ok(SchoolUserListData(users=users, count=len(users)))
