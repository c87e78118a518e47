"""
Messaging Repository

Database operations for threads, participants, messages and read
receipts. Functions only flush; the service layer owns commits.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import distinct, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edubridge.modules.messaging.models import (
    Message,
    MessageReadStatus,
    Thread,
    ThreadParticipant,
    ThreadType,
)
from edubridge.modules.shared import utcnow

logger = logging.getLogger(__name__)


# Threads


async def get_thread(db: AsyncSession, thread_id: str) -> Thread | None:
    return await db.get(Thread, thread_id)


async def get_thread_by_direct_key(db: AsyncSession, direct_key: str) -> Thread | None:
    result = await db.execute(select(Thread).where(Thread.direct_key == direct_key))
    return result.scalar_one_or_none()


async def get_thread_by_group(db: AsyncSession, group_id: str) -> Thread | None:
    result = await db.execute(select(Thread).where(Thread.group_id == group_id))
    return result.scalar_one_or_none()


async def get_thread_by_class(db: AsyncSession, class_id: str) -> Thread | None:
    result = await db.execute(select(Thread).where(Thread.class_id == class_id))
    return result.scalar_one_or_none()


async def get_shared_threads(db: AsyncSession) -> list[Thread]:
    """All group and class threads."""
    result = await db.execute(
        select(Thread).where(Thread.type.in_([ThreadType.GROUP, ThreadType.CLASS_CHANNEL]))
    )
    return list(result.scalars().all())


async def create_thread(
    db: AsyncSession,
    *,
    thread_type: ThreadType,
    participant_ids: Iterable[str],
    direct_key: str | None = None,
    group_id: str | None = None,
    class_id: str | None = None,
) -> Thread:
    """
    Create a thread together with its participant rows.

    Raises IntegrityError on flush if another thread already owns the key.
    """
    thread = Thread(
        type=thread_type,
        direct_key=direct_key,
        group_id=group_id,
        class_id=class_id,
    )
    thread.participants = [
        ThreadParticipant(user_id=user_id) for user_id in dict.fromkeys(participant_ids)
    ]
    db.add(thread)
    await db.flush()
    return thread


async def touch_thread(db: AsyncSession, thread_id: str) -> None:
    """Bump a thread's updated_at so listings order it first."""
    await db.execute(update(Thread).where(Thread.id == thread_id).values(updated_at=utcnow()))


async def get_user_threads(db: AsyncSession, user_id: str) -> list[Thread]:
    """Threads the user participates in, most recently active first."""
    result = await db.execute(
        select(Thread)
        .join(ThreadParticipant, ThreadParticipant.thread_id == Thread.id)
        .where(ThreadParticipant.user_id == user_id)
        .order_by(Thread.updated_at.desc())
    )
    return list(result.scalars().all())


# Participants


async def is_participant(db: AsyncSession, thread_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(ThreadParticipant.id)
        .where(ThreadParticipant.thread_id == thread_id, ThreadParticipant.user_id == user_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_participant_ids(db: AsyncSession, thread_id: str) -> list[str]:
    """Participant user IDs in join order."""
    result = await db.execute(
        select(ThreadParticipant.user_id)
        .where(ThreadParticipant.thread_id == thread_id)
        .order_by(ThreadParticipant.joined_at)
    )
    return list(result.scalars().all())


async def get_participant_ids_by_thread(
    db: AsyncSession, thread_ids: list[str]
) -> dict[str, list[str]]:
    """Participant user IDs for several threads, each in join order."""
    if not thread_ids:
        return {}
    result = await db.execute(
        select(ThreadParticipant.thread_id, ThreadParticipant.user_id)
        .where(ThreadParticipant.thread_id.in_(thread_ids))
        .order_by(ThreadParticipant.joined_at)
    )
    participants: dict[str, list[str]] = {thread_id: [] for thread_id in thread_ids}
    for thread_id, user_id in result.all():
        participants[thread_id].append(user_id)
    return participants


async def count_participants(db: AsyncSession, thread_id: str) -> int:
    result = await db.execute(
        select(func.count(ThreadParticipant.id)).where(ThreadParticipant.thread_id == thread_id)
    )
    return result.scalar_one()


async def add_participants(db: AsyncSession, thread_id: str, user_ids: Iterable[str]) -> list[str]:
    """
    Add the users that are not yet participants of a thread.

    Returns:
        IDs of the users that were added
    """
    existing = set(await get_participant_ids(db, thread_id))
    missing = [user_id for user_id in dict.fromkeys(user_ids) if user_id not in existing]
    for user_id in missing:
        db.add(ThreadParticipant(thread_id=thread_id, user_id=user_id))
    if missing:
        await db.flush()
    return missing


# Messages


async def get_message(db: AsyncSession, message_id: str) -> Message | None:
    return await db.get(Message, message_id)


async def create_message(
    db: AsyncSession,
    *,
    thread_id: str,
    sender_id: str,
    content: str,
    parent_message_id: str | None = None,
) -> Message:
    message = Message(
        thread_id=thread_id,
        sender_id=sender_id,
        content=content,
        parent_message_id=parent_message_id,
    )
    db.add(message)
    await db.flush()
    return message


async def get_top_level_messages(
    db: AsyncSession, thread_id: str, limit: int, offset: int
) -> list[Message]:
    """Undeleted top-level messages, newest first, with replies loaded."""
    result = await db.execute(
        select(Message)
        .options(selectinload(Message.replies))
        .where(
            Message.thread_id == thread_id,
            Message.parent_message_id.is_(None),
            Message.deleted_at.is_(None),
        )
        .order_by(Message.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_messages_since(db: AsyncSession, thread_id: str, since: datetime) -> list[Message]:
    """Undeleted messages created strictly after ``since``, oldest first."""
    result = await db.execute(
        select(Message)
        .options(selectinload(Message.replies))
        .where(
            Message.thread_id == thread_id,
            Message.deleted_at.is_(None),
            Message.created_at > since,
        )
        .order_by(Message.created_at.asc())
    )
    return list(result.scalars().all())


async def get_last_messages(db: AsyncSession, thread_ids: list[str]) -> dict[str, Message]:
    """Latest undeleted message of each thread."""
    if not thread_ids:
        return {}
    latest = (
        select(Message.thread_id, func.max(Message.created_at).label("created_at"))
        .where(Message.thread_id.in_(thread_ids), Message.deleted_at.is_(None))
        .group_by(Message.thread_id)
        .subquery()
    )
    result = await db.execute(
        select(Message)
        .join(
            latest,
            (Message.thread_id == latest.c.thread_id) & (Message.created_at == latest.c.created_at),
        )
        .where(Message.deleted_at.is_(None))
    )
    return {message.thread_id: message for message in result.scalars().all()}


# Read receipts


async def get_read_status(
    db: AsyncSession, message_id: str, user_id: str
) -> MessageReadStatus | None:
    result = await db.execute(
        select(MessageReadStatus).where(
            MessageReadStatus.message_id == message_id,
            MessageReadStatus.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def create_read_status(db: AsyncSession, message_id: str, user_id: str) -> MessageReadStatus:
    receipt = MessageReadStatus(message_id=message_id, user_id=user_id, read_at=utcnow())
    db.add(receipt)
    await db.flush()
    return receipt


async def get_read_message_ids(
    db: AsyncSession, message_ids: list[str], user_id: str
) -> set[str]:
    """Subset of ``message_ids`` the user has a receipt for."""
    if not message_ids:
        return set()
    result = await db.execute(
        select(MessageReadStatus.message_id).where(
            MessageReadStatus.message_id.in_(message_ids),
            MessageReadStatus.user_id == user_id,
        )
    )
    return set(result.scalars().all())


async def count_readers(db: AsyncSession, message_ids: list[str]) -> dict[str, int]:
    """
    Distinct readers per message, excluding the message's sender.

    Messages without any such reader are absent from the result.
    """
    if not message_ids:
        return {}
    result = await db.execute(
        select(MessageReadStatus.message_id, func.count(distinct(MessageReadStatus.user_id)))
        .join(Message, Message.id == MessageReadStatus.message_id)
        .where(
            MessageReadStatus.message_id.in_(message_ids),
            MessageReadStatus.user_id != Message.sender_id,
        )
        .group_by(MessageReadStatus.message_id)
    )
    return {message_id: count for message_id, count in result.all()}
