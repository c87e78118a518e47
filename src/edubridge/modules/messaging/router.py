"""
Messaging Router

API endpoints for threads, messages and long polling. All endpoints
require a bearer token and operate on behalf of the caller.

Endpoints:
- GET /threads - List the caller's threads
- POST /threads - Get or create a direct thread with another user
- GET /threads/{thread_id}/messages - Page through a thread's messages
- POST /threads/{thread_id}/messages - Send a message
- POST /messages/{message_id}/read - Mark a message as read
- POST /groups/{group_id}/thread - Get or create a group's thread
- POST /classes/{class_id}/thread - Get or create a class's thread
- GET /threads/{thread_id}/poll - Long poll for new messages
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.config import settings
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, to_http_exception
from edubridge.modules.messaging import service
from edubridge.modules.messaging.schemas import (
    CreateDirectThreadRequest,
    MessageListData,
    MessageResponse,
    ReadReceiptResponse,
    SendMessageRequest,
    ThreadListData,
    ThreadResponse,
)
from edubridge.modules.shared.schemas import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/threads", response_model=ApiResponse[ThreadListData])
async def list_threads(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ThreadListData]:
    """List the caller's threads, most recently active first."""
    threads = await service.get_user_threads(db, user.id)
    return ok(ThreadListData(threads=threads, count=len(threads)))


@router.post("/threads", response_model=ApiResponse[ThreadResponse])
async def create_direct_thread(
    request: CreateDirectThreadRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ThreadResponse]:
    """
    Get or create the direct thread between the caller and another user.

    Calling this repeatedly for the same pair returns the same thread.
    """
    try:
        thread = await service.get_or_create_direct_thread(db, user.id, request.other_user_id)
    except ServiceError as e:
        logger.warning(f"Direct thread rejected for {user.id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(thread)


@router.get("/threads/{thread_id}/messages", response_model=ApiResponse[MessageListData])
async def list_messages(
    thread_id: str,
    limit: int = Query(default=service.DEFAULT_PAGE_SIZE, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[MessageListData]:
    """Page through top-level messages, oldest first, with their replies."""
    try:
        messages = await service.get_thread_messages(db, thread_id, user.id, limit, offset)
    except ServiceError as e:
        logger.warning(f"Message listing rejected for thread {thread_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(MessageListData(messages=messages, count=len(messages)))


@router.post(
    "/threads/{thread_id}/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    thread_id: str,
    request: SendMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[MessageResponse]:
    """Send a message, optionally as a reply to another message."""
    try:
        message = await service.send_message(
            db,
            thread_id,
            user.id,
            request.content,
            parent_message_id=request.parent_message_id,
        )
    except ServiceError as e:
        logger.warning(f"Send rejected for thread {thread_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(message)


@router.post("/messages/{message_id}/read", response_model=ApiResponse[ReadReceiptResponse])
async def mark_message_as_read(
    message_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ReadReceiptResponse]:
    try:
        receipt = await service.mark_message_as_read(db, message_id, user.id)
    except ServiceError as e:
        logger.warning(f"Read receipt rejected for message {message_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(receipt)


@router.post("/groups/{group_id}/thread", response_model=ApiResponse[ThreadResponse])
async def get_group_thread(
    group_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ThreadResponse]:
    """Get or create the thread of a group the caller belongs to."""
    try:
        thread = await service.get_or_create_group_thread(db, group_id, user.id)
    except ServiceError as e:
        logger.warning(f"Group thread rejected for group {group_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(thread)


@router.post("/classes/{class_id}/thread", response_model=ApiResponse[ThreadResponse])
async def get_class_thread(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ThreadResponse]:
    """Get or create the channel thread of a class the caller belongs to."""
    try:
        thread = await service.get_or_create_class_thread(db, class_id, user.id)
    except ServiceError as e:
        logger.warning(f"Class thread rejected for class {class_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(thread)


@router.get("/threads/{thread_id}/poll", response_model=ApiResponse[MessageListData])
async def poll_messages(
    thread_id: str,
    since: datetime = Query(..., description="Return messages created after this instant"),
    timeout: int = Query(
        default=settings.poll_default_timeout_ms,
        description="Maximum wait in milliseconds",
    ),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[MessageListData]:
    """
    Long poll for new messages.

    Holds the request open until a message newer than ``since`` exists or
    the timeout elapses, in which case the list is empty. Naive ``since``
    values are treated as UTC.
    """
    timeout_ms = min(max(timeout, 0), settings.poll_max_timeout_ms)

    try:
        messages = await service.poll_new_messages(db, thread_id, user.id, since, timeout_ms)
    except ServiceError as e:
        logger.warning(f"Poll rejected for thread {thread_id}: {e.message}")
        raise to_http_exception(e) from e

    return ok(MessageListData(messages=messages, count=len(messages)))
