"""
Messaging Models

Threads are message containers of three kinds. Access to a thread is
controlled by explicit participant rows, copied from group or class
membership when the thread is created and topped up afterwards.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edubridge.modules.shared import BaseModel, utcnow


class ThreadType(str, Enum):
    """Kind of thread."""

    DIRECT = "direct"
    GROUP = "group"
    CLASS_CHANNEL = "class_channel"


class MessageStatus(str, Enum):
    """Delivery status derived from read receipts."""

    SENT = "SENT"
    SEEN = "SEEN"


class Thread(BaseModel):
    """
    A conversation.

    direct threads are keyed by ``direct_key`` (the two user ids sorted and
    joined with ``:``); group and class threads by their owning row. Each
    key is unique, so there is at most one thread per pair, group or class.
    """

    __tablename__ = "threads"

    type: Mapped[ThreadType] = mapped_column(
        SAEnum(ThreadType, name="thread_type"),
        nullable=False,
    )
    direct_key: Mapped[str | None] = mapped_column(String(80), nullable=True, unique=True)
    group_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    class_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )

    participants: Mapped[list["ThreadParticipant"]] = relationship(
        "ThreadParticipant",
        back_populates="thread",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "group_id IS NULL OR class_id IS NULL",
            name="ck_threads_single_owner",
        ),
    )

    def __repr__(self) -> str:
        return f"<Thread(id={self.id}, type={self.type})>"


class ThreadParticipant(BaseModel):
    """Grants a user read/write access to a thread."""

    __tablename__ = "thread_participants"

    thread_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    thread: Mapped["Thread"] = relationship("Thread", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("thread_id", "user_id", name="uq_thread_participants_pair"),
    )


class Message(BaseModel):
    """
    A message in a thread.

    Replies point at a top-level message; there is a single level of
    nesting. Deleted messages keep their row with ``deleted_at`` set.
    """

    __tablename__ = "messages"

    thread_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_message_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    replies: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="parent",
        order_by="Message.created_at",
        passive_deletes=True,
    )
    parent: Mapped["Message | None"] = relationship(
        "Message",
        back_populates="replies",
        remote_side="Message.id",
    )

    __table_args__ = (Index("ix_messages_thread_created", "thread_id", "created_at"),)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class MessageReadStatus(BaseModel):
    """Read receipt of one user for one message."""

    __tablename__ = "message_read_status"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_read_status_pair"),
    )
