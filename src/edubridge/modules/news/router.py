"""
News Router

Endpoints:
- GET /news/school/{school_id} - School feed
- GET /news/class/{class_id} - Class feed
- POST /news - Publish a post or poll
- DELETE /news/{news_post_id} - Delete own post
- POST /news/{news_post_id}/like - Toggle like
- POST /news/poll/{poll_option_id}/vote - Toggle/move poll vote
- GET /news/permissions/school/{school_id} - May the caller post school news
- GET /news/permissions/class/{class_id} - May the caller post class news
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, to_http_exception
from edubridge.modules.news import service
from edubridge.modules.news.schemas import (
    CreateNewsPostRequest,
    DeleteNewsResponse,
    LikeResponse,
    NewsListData,
    NewsPostResponse,
    PermissionResponse,
    VoteResponse,
)
from edubridge.modules.shared.schemas import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/school/{school_id}", response_model=ApiResponse[NewsListData])
async def get_school_news(
    school_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[NewsListData]:
    try:
        posts = await service.get_school_news(db, school_id, user.id)
    except ServiceError as e:
        logger.warning(f"School news rejected for {school_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(NewsListData(posts=posts, count=len(posts)))


@router.get("/class/{class_id}", response_model=ApiResponse[NewsListData])
async def get_class_news(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[NewsListData]:
    try:
        posts = await service.get_class_news(db, class_id, user.id)
    except ServiceError as e:
        logger.warning(f"Class news rejected for {class_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(NewsListData(posts=posts, count=len(posts)))


@router.post(
    "",
    response_model=ApiResponse[NewsPostResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_news_post(
    request: CreateNewsPostRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[NewsPostResponse]:
    """
    Publish an announcement or poll.

    School posts need a school admin row or the post_news grant; class
    posts need a class membership with can_post_news.
    """
    try:
        post = await service.create_news_post(
            db,
            user.id,
            request.scope,
            request.title,
            request.content,
            post_type=request.type,
            school_id=request.school_id,
            class_id=request.class_id,
            poll_options=request.poll_options,
            attachments=request.attachments,
        )
    except ServiceError as e:
        logger.warning(f"News post rejected for {user.id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(post)


@router.delete("/{news_post_id}", response_model=ApiResponse[DeleteNewsResponse])
async def delete_news_post(
    news_post_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[DeleteNewsResponse]:
    """Delete one of the caller's own posts."""
    try:
        await service.delete_news_post(db, news_post_id, user.id)
    except ServiceError as e:
        logger.warning(f"Deleting news post {news_post_id} rejected: {e.message}")
        raise to_http_exception(e) from e

    return ok(DeleteNewsResponse(message="News post deleted successfully"))


@router.post("/{news_post_id}/like", response_model=ApiResponse[LikeResponse])
async def toggle_like(
    news_post_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[LikeResponse]:
    try:
        result = await service.toggle_like(db, news_post_id, user.id)
    except ServiceError as e:
        logger.warning(f"Like on {news_post_id} rejected: {e.message}")
        raise to_http_exception(e) from e

    return ok(result)


@router.post("/poll/{poll_option_id}/vote", response_model=ApiResponse[VoteResponse])
async def vote_on_poll(
    poll_option_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[VoteResponse]:
    try:
        result = await service.vote_on_poll(db, poll_option_id, user.id)
    except ServiceError as e:
        logger.warning(f"Vote on option {poll_option_id} rejected: {e.message}")
        raise to_http_exception(e) from e

    return ok(result)


@router.get("/permissions/school/{school_id}", response_model=ApiResponse[PermissionResponse])
async def check_school_permission(
    school_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PermissionResponse]:
    can_post = await service.can_post_to_school(db, user.id, school_id)
    return ok(PermissionResponse(can_post=can_post))


@router.get("/permissions/class/{class_id}", response_model=ApiResponse[PermissionResponse])
async def check_class_permission(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PermissionResponse]:
    can_post = await service.can_post_to_class(db, user.id, class_id)
    return ok(PermissionResponse(can_post=can_post))
