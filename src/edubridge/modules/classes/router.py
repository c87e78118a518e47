"""
Classes Router

- GET /classes - List the caller's classes
- GET /classes/{class_id}/groups - List the caller's groups in a class
- POST /classes/{class_id}/groups - Create a group
- GET /classes/{class_id}/members - List class members
- POST /groups/{group_id}/members - Add a class member to a group
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, to_http_exception
from edubridge.modules.classes import service
from edubridge.modules.classes.schemas import (
    AddGroupMemberRequest,
    ClassListData,
    ClassMemberListData,
    CreateGroupRequest,
    GroupListData,
    GroupMemberResponse,
    GroupResponse,
)
from edubridge.modules.shared.schemas import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()
groups_router = APIRouter()


@router.get("", response_model=ApiResponse[ClassListData])
async def list_classes(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassListData]:
    """List the classes the caller is a member of."""
    classes = await service.get_user_classes(db, user.id)
    return ok(ClassListData(classes=classes, count=len(classes)))


@router.get("/{class_id}/groups", response_model=ApiResponse[GroupListData])
async def list_groups(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[GroupListData]:
    try:
        groups = await service.get_class_groups(db, class_id, user.id)
    except ServiceError as e:
        logger.warning(f"Group listing rejected for class {class_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(GroupListData(groups=groups, count=len(groups)))


@router.post(
    "/{class_id}/groups",
    response_model=ApiResponse[GroupResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_group(
    class_id: str,
    request: CreateGroupRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[GroupResponse]:
    """Create a group. Requires the group-creation capability in the class."""
    try:
        group = await service.create_group(
            db, class_id, user.id, request.name, request.description
        )
    except ServiceError as e:
        logger.warning(f"Group creation rejected for class {class_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(group)


@router.get("/{class_id}/members", response_model=ApiResponse[ClassMemberListData])
async def list_members(
    class_id: str,
    exclude_group_id: str | None = Query(default=None, alias="excludeGroupId"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassMemberListData]:
    """List class members, optionally without the members of one group."""
    try:
        members = await service.get_class_members(db, class_id, user.id, exclude_group_id)
    except ServiceError as e:
        logger.warning(f"Member listing rejected for class {class_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(ClassMemberListData(members=members, count=len(members)))


@groups_router.post(
    "/{group_id}/members",
    response_model=ApiResponse[GroupMemberResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_group_member(
    group_id: str,
    request: AddGroupMemberRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[GroupMemberResponse]:
    """Add a member of the group's class to the group."""
    try:
        member = await service.add_user_to_group(db, group_id, request.user_id, user.id)
    except ServiceError as e:
        logger.warning(f"Adding {request.user_id} to group {group_id} rejected: {e.message}")
        raise to_http_exception(e) from e

    return ok(member)
