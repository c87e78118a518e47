"""
Messaging module - Threads, messages, read receipts and long polling.
"""

from edubridge.modules.messaging.models import (
    Message,
    MessageReadStatus,
    MessageStatus,
    Thread,
    ThreadParticipant,
    ThreadType,
)

__all__ = [
    "Message",
    "MessageReadStatus",
    "MessageStatus",
    "Thread",
    "ThreadParticipant",
    "ThreadType",
]
