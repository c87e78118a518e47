"""Messaging schemas."""

from datetime import datetime

from pydantic import Field

from edubridge.modules.messaging.models import MessageStatus, ThreadType
from edubridge.modules.shared.schemas import CamelModel, UserSummary


class SchoolUserListData(CamelModel):
    users: list[UserSummary]
    count: int


# Requests


class CreateDirectThreadRequest(CamelModel):
    other_user_id: str = Field(..., min_length=1)


class SendMessageRequest(CamelModel):
    content: str
    parent_message_id: str | None = None


# Responses


class LastMessage(CamelModel):
    id: str
    content: str
    sender_id: str
    created_at: datetime
    is_read: bool


class ThreadSummary(CamelModel):
    """One row of the caller's thread list."""

    thread_id: str
    type: ThreadType
    name: str | None = None
    participant: UserSummary | None = None
    participant_count: int
    last_message: LastMessage | None = None
    updated_at: datetime


class ThreadListData(CamelModel):
    threads: list[ThreadSummary]
    count: int


class ThreadResponse(CamelModel):
    id: str
    type: ThreadType
    group_id: str | None = None
    class_id: str | None = None
    participant_ids: list[str]
    created_at: datetime
    updated_at: datetime


class MessageResponse(CamelModel):
    """
    A message with its derived status.

    ``is_read`` is the caller's own receipt. Replies are only populated on
    top-level messages.
    """

    id: str
    thread_id: str
    sender_id: str
    content: str
    parent_message_id: str | None = None
    status: MessageStatus
    is_read: bool = False
    reply_count: int = 0
    replies: list["MessageResponse"] = []
    created_at: datetime
    updated_at: datetime


class MessageListData(CamelModel):
    messages: list[MessageResponse]
    count: int


class ReadReceiptResponse(CamelModel):
    message_id: str
    user_id: str
    read_at: datetime
    status: MessageStatus
