"""
Messaging Service Layer

Business logic for threads, messages, read receipts and long polling.

This module implements:
1. Thread lifecycle:
   - Direct threads keyed by the canonical sorted user pair
   - Group and class threads keyed by their owning row
   - Creation inside a SAVEPOINT; a unique-constraint collision with a
     concurrent creator falls back to the winner's thread
   - Participants copied from membership at creation time, topped up by
     the group-member hook and by ``sync_thread_participants``

2. Send/read:
   - Only participants may read or write a thread
   - One level of reply nesting (replying to a reply attaches to its root)
   - Read receipts are upserted per (message, user); the SENT/SEEN status
     is derived from them and never stored

3. Long polling:
   - Re-queries every ``poll_interval_seconds`` until new messages exist
     or the timeout elapses
   - The read transaction is committed before each sleep so no pooled
     connection is held while waiting
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.config import settings
from edubridge.core.errors import AccessDeniedError, InvalidRequestError, NotFoundError
from edubridge.modules import access
from edubridge.modules.classes import repository as classes_repository
from edubridge.modules.messaging import repository
from edubridge.modules.messaging.models import Message, MessageStatus, Thread, ThreadType
from edubridge.modules.messaging.schemas import (
    LastMessage,
    MessageResponse,
    ReadReceiptResponse,
    ThreadResponse,
    ThreadSummary,
)
from edubridge.modules.schools.repository import SchoolRepository
from edubridge.modules.shared import utcnow
from edubridge.modules.shared.schemas import UserSummary
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def direct_key(user_a: str, user_b: str) -> str:
    """Canonical key of an unordered user pair."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


def compute_message_status(reader_count: int, participant_count: int) -> MessageStatus:
    """
    Derive a message's status from its receipts.

    A message is SEEN once every participant except the sender has read it.
    Single-participant threads still need one reader.
    """
    required = max(participant_count - 1, 1)
    return MessageStatus.SEEN if reader_count >= required else MessageStatus.SENT


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _user_summary(user) -> UserSummary:
    return UserSummary(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
    )


# =============================================================================
# Users
# =============================================================================


async def get_school_users(db: AsyncSession, school_id: str, user_id: str) -> list[UserSummary]:
    """
    List everyone attached to a school except the caller.

    Raises:
        AccessDeniedError: If the caller has no path into the school
    """
    await access.require_school_access(db, school_id, user_id)

    user_ids = await SchoolRepository.get_member_user_ids(db, school_id)
    user_ids.discard(user_id)

    users = await UserRepository.get_by_ids(db, user_ids)
    users.sort(key=lambda u: u.sort_key)
    return [_user_summary(u) for u in users]


# =============================================================================
# Threads
# =============================================================================


async def _thread_response(db: AsyncSession, thread: Thread) -> ThreadResponse:
    participant_ids = await repository.get_participant_ids(db, thread.id)
    return ThreadResponse(
        id=thread.id,
        type=thread.type,
        group_id=thread.group_id,
        class_id=thread.class_id,
        participant_ids=participant_ids,
        created_at=thread.created_at,
        updated_at=thread.updated_at,
    )


async def _get_or_create_thread(
    db: AsyncSession,
    lookup: Callable[[], Awaitable[Thread | None]],
    **create_kwargs: Any,
) -> Thread:
    """
    Return the thread found by ``lookup`` or create it.

    The insert runs in a SAVEPOINT. If a concurrent request created the
    same thread first, the unique constraint fires and the existing thread
    is read back instead.
    """
    thread = await lookup()
    if thread is not None:
        return thread

    try:
        async with db.begin_nested():
            thread = await repository.create_thread(db, **create_kwargs)
    except IntegrityError:
        logger.info(f"Concurrent {create_kwargs['thread_type'].value} thread creation, reusing")
        thread = await lookup()
        if thread is None:
            raise
        return thread

    await db.commit()
    logger.info(f"Created {thread.type.value} thread {thread.id}")
    return thread


async def get_or_create_direct_thread(
    db: AsyncSession, user_id: str, other_user_id: str
) -> ThreadResponse:
    """
    Get or create the direct thread between two users.

    Idempotent for the unordered pair.

    Raises:
        InvalidRequestError: If both users are the same
        NotFoundError: If the other user does not exist
    """
    if user_id == other_user_id:
        raise InvalidRequestError("Cannot start a conversation with yourself", "SELF_THREAD")

    if not await UserRepository.exists(db, other_user_id):
        raise NotFoundError("User not found", "USER_NOT_FOUND")

    key = direct_key(user_id, other_user_id)

    async def lookup() -> Thread | None:
        return await repository.get_thread_by_direct_key(db, key)

    thread = await _get_or_create_thread(
        db,
        lookup,
        thread_type=ThreadType.DIRECT,
        participant_ids=[user_id, other_user_id],
        direct_key=key,
    )
    return await _thread_response(db, thread)


async def get_or_create_group_thread(
    db: AsyncSession, group_id: str, user_id: str
) -> ThreadResponse:
    """
    Get or create a group's thread.

    A new thread gets every current group member as participant.

    Raises:
        NotFoundError: If the group does not exist
        AccessDeniedError: If the caller is not a group member
    """
    group = await classes_repository.get_group(db, group_id)
    if group is None:
        raise NotFoundError("Group not found", "GROUP_NOT_FOUND")

    if not await classes_repository.is_group_member(db, group_id, user_id):
        raise AccessDeniedError("User is not a member of this group", "GROUP_ACCESS_DENIED")

    async def lookup() -> Thread | None:
        return await repository.get_thread_by_group(db, group_id)

    thread = await lookup()
    if thread is None:
        member_ids = await classes_repository.get_group_member_ids(db, group_id)
        thread = await _get_or_create_thread(
            db,
            lookup,
            thread_type=ThreadType.GROUP,
            participant_ids=member_ids,
            group_id=group_id,
        )
    return await _thread_response(db, thread)


async def get_or_create_class_thread(
    db: AsyncSession, class_id: str, user_id: str
) -> ThreadResponse:
    """
    Get or create a class's channel thread.

    A new thread gets every current class member as participant.

    Raises:
        NotFoundError: If the class does not exist
        AccessDeniedError: If the caller is not a class member
    """
    school_class = await classes_repository.get_class(db, class_id)
    if school_class is None:
        raise NotFoundError("Class not found", "CLASS_NOT_FOUND")

    await access.require_class_membership(db, class_id, user_id)

    async def lookup() -> Thread | None:
        return await repository.get_thread_by_class(db, class_id)

    thread = await lookup()
    if thread is None:
        member_ids = await classes_repository.get_class_member_ids(db, class_id)
        thread = await _get_or_create_thread(
            db,
            lookup,
            thread_type=ThreadType.CLASS_CHANNEL,
            participant_ids=member_ids,
            class_id=class_id,
        )
    return await _thread_response(db, thread)


def _thread_name(
    thread: Thread, group_names: dict[str, str], class_names: dict[str, str]
) -> str | None:
    if thread.group_id:
        return group_names.get(thread.group_id)
    if thread.class_id:
        return class_names.get(thread.class_id)
    return None


async def get_user_threads(db: AsyncSession, user_id: str) -> list[ThreadSummary]:
    """
    List the caller's threads, most recently active first.

    Each entry carries the first other participant, the participant count
    and the latest undeleted message.
    """
    threads = await repository.get_user_threads(db, user_id)
    thread_ids = [t.id for t in threads]

    participants = await repository.get_participant_ids_by_thread(db, thread_ids)
    last_messages = await repository.get_last_messages(db, thread_ids)
    read_ids = await repository.get_read_message_ids(
        db, [m.id for m in last_messages.values()], user_id
    )
    group_names = await classes_repository.get_group_names(
        db, [t.group_id for t in threads if t.group_id]
    )
    class_names = await classes_repository.get_class_names(
        db, [t.class_id for t in threads if t.class_id]
    )

    other_ids = {
        thread_id: next((uid for uid in ids if uid != user_id), None)
        for thread_id, ids in participants.items()
    }
    users = {
        u.id: u
        for u in await UserRepository.get_by_ids(db, [uid for uid in other_ids.values() if uid])
    }

    summaries = []
    for thread in threads:
        other = users.get(other_ids.get(thread.id))
        last = last_messages.get(thread.id)
        summaries.append(
            ThreadSummary(
                thread_id=thread.id,
                type=thread.type,
                name=_thread_name(thread, group_names, class_names),
                participant=_user_summary(other) if other else None,
                participant_count=len(participants.get(thread.id, [])),
                last_message=LastMessage(
                    id=last.id,
                    content=last.content,
                    sender_id=last.sender_id,
                    created_at=last.created_at,
                    is_read=last.sender_id == user_id or last.id in read_ids,
                )
                if last
                else None,
                updated_at=thread.updated_at,
            )
        )
    return summaries


# =============================================================================
# Messages
# =============================================================================


async def _build_message_responses(
    db: AsyncSession,
    thread_id: str,
    messages: list[Message],
    user_id: str,
) -> list[MessageResponse]:
    """Attach undeleted replies, derived status and the caller's read flag."""
    replies = {m.id: [r for r in m.replies if not r.is_deleted] for m in messages}
    all_ids = [m.id for m in messages] + [r.id for rs in replies.values() for r in rs]

    participant_count = await repository.count_participants(db, thread_id)
    readers = await repository.count_readers(db, all_ids)
    read_ids = await repository.get_read_message_ids(db, all_ids, user_id)

    def build(message: Message, children: list[Message]) -> MessageResponse:
        return MessageResponse(
            id=message.id,
            thread_id=message.thread_id,
            sender_id=message.sender_id,
            content=message.content,
            parent_message_id=message.parent_message_id,
            status=compute_message_status(readers.get(message.id, 0), participant_count),
            is_read=message.id in read_ids,
            reply_count=len(children),
            replies=[build(child, []) for child in children],
            created_at=message.created_at,
            updated_at=message.updated_at,
        )

    return [build(m, replies[m.id]) for m in messages]


async def get_thread_messages(
    db: AsyncSession,
    thread_id: str,
    user_id: str,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[MessageResponse]:
    """
    Page through a thread's top-level messages.

    Pages are taken newest-first and returned oldest-first.

    Raises:
        AccessDeniedError: If the caller is not a participant
    """
    await access.require_thread_participant(db, thread_id, user_id)

    messages = await repository.get_top_level_messages(db, thread_id, limit, offset)
    messages.reverse()
    return await _build_message_responses(db, thread_id, messages, user_id)


async def send_message(
    db: AsyncSession,
    thread_id: str,
    sender_id: str,
    content: str,
    parent_message_id: str | None = None,
) -> MessageResponse:
    """
    Post a message to a thread.

    Raises:
        AccessDeniedError: If the sender is not a participant
        InvalidRequestError: If the content is blank
        NotFoundError: If the parent is missing, deleted or in another thread
    """
    await access.require_thread_participant(db, thread_id, sender_id)

    if not content or not content.strip():
        raise InvalidRequestError("Message content is required", "EMPTY_MESSAGE")

    if parent_message_id:
        parent = await repository.get_message(db, parent_message_id)
        if parent is None or parent.is_deleted or parent.thread_id != thread_id:
            raise NotFoundError("Parent message not found", "PARENT_NOT_FOUND")
        # Replies hang off the top-level message
        parent_message_id = parent.parent_message_id or parent.id

    message = await repository.create_message(
        db,
        thread_id=thread_id,
        sender_id=sender_id,
        content=content,
        parent_message_id=parent_message_id,
    )
    await repository.touch_thread(db, thread_id)
    await db.commit()

    participant_count = await repository.count_participants(db, thread_id)
    logger.info(f"Message {message.id} sent to thread {thread_id}")

    return MessageResponse(
        id=message.id,
        thread_id=message.thread_id,
        sender_id=message.sender_id,
        content=message.content,
        parent_message_id=message.parent_message_id,
        status=compute_message_status(0, participant_count),
        created_at=message.created_at,
        updated_at=message.updated_at,
    )


async def mark_message_as_read(
    db: AsyncSession, message_id: str, user_id: str
) -> ReadReceiptResponse:
    """
    Record that a user has read a message.

    Re-reading refreshes ``read_at``. Returns the receipt together with the
    message's status after the write.

    Raises:
        NotFoundError: If the message is missing or deleted
        AccessDeniedError: If the user is not a participant of its thread
    """
    message = await repository.get_message(db, message_id)
    if message is None or message.is_deleted:
        raise NotFoundError("Message not found", "MESSAGE_NOT_FOUND")

    await access.require_thread_participant(db, message.thread_id, user_id)

    receipt = await repository.get_read_status(db, message_id, user_id)
    if receipt is None:
        try:
            async with db.begin_nested():
                receipt = await repository.create_read_status(db, message_id, user_id)
        except IntegrityError:
            receipt = await repository.get_read_status(db, message_id, user_id)
            if receipt is None:
                raise
            receipt.read_at = utcnow()
    else:
        receipt.read_at = utcnow()
    await db.commit()

    readers = await repository.count_readers(db, [message_id])
    participant_count = await repository.count_participants(db, message.thread_id)

    return ReadReceiptResponse(
        message_id=message_id,
        user_id=user_id,
        read_at=receipt.read_at,
        status=compute_message_status(readers.get(message_id, 0), participant_count),
    )


# =============================================================================
# Long polling
# =============================================================================


async def poll_new_messages(
    db: AsyncSession,
    thread_id: str,
    user_id: str,
    since: datetime,
    timeout_ms: int,
    interval_seconds: float | None = None,
) -> list[MessageResponse]:
    """
    Wait for messages created after ``since``.

    Access is checked once up front. Returns as soon as a query finds
    messages, or an empty list once ``timeout_ms`` has elapsed.

    Args:
        db: Database session
        thread_id: Thread to watch
        user_id: Caller's user ID
        since: Exclusive lower bound on created_at (naive values are UTC)
        timeout_ms: Maximum time to wait
        interval_seconds: Delay between queries, defaults to the setting
    """
    await access.require_thread_participant(db, thread_id, user_id)

    since = _as_utc(since)
    interval = settings.poll_interval_seconds if interval_seconds is None else interval_seconds
    deadline = time.monotonic() + max(timeout_ms, 0) / 1000

    while True:
        messages = await repository.get_messages_since(db, thread_id, since)
        if messages:
            logger.debug(f"Poll on thread {thread_id} returned {len(messages)} message(s)")
            return await _build_message_responses(db, thread_id, messages, user_id)

        # Release the connection while waiting
        await db.commit()

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return []
        await asyncio.sleep(min(interval, remaining))


# =============================================================================
# Participant maintenance
# =============================================================================


async def add_group_member_to_thread(db: AsyncSession, group_id: str, user_id: str) -> bool:
    """
    Add a new group member to the group's thread, if the thread exists.

    Only flushes; the caller commits together with the group membership.
    """
    thread = await repository.get_thread_by_group(db, group_id)
    if thread is None:
        return False
    added = await repository.add_participants(db, thread.id, [user_id])
    return bool(added)


async def sync_thread_participants(db: AsyncSession) -> dict[str, int]:
    """
    Insert missing participants into every group and class thread.

    Participants are never removed. A failure on one thread is logged and
    the remaining threads are still processed.

    Returns:
        Counts of threads checked, participants added and failures
    """
    threads = await repository.get_shared_threads(db)
    added_total = 0
    failures = 0

    for thread in threads:
        if thread.group_id:
            member_ids = await classes_repository.get_group_member_ids(db, thread.group_id)
        elif thread.class_id:
            member_ids = await classes_repository.get_class_member_ids(db, thread.class_id)
        else:
            continue

        try:
            async with db.begin_nested():
                added = await repository.add_participants(db, thread.id, member_ids)
        except SQLAlchemyError as e:
            failures += 1
            logger.error(f"Failed to sync participants for thread {thread.id}: {e}")
            continue

        if added:
            added_total += len(added)
            logger.info(f"Added {len(added)} participant(s) to thread {thread.id}")

    await db.commit()

    return {
        "threads_checked": len(threads),
        "participants_added": added_total,
        "failures": failures,
    }
