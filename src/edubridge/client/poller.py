"""
Message Poller

Client-side long-poll loop for one open conversation. It keeps a cursor
at the newest message seen, re-polls the server continuously, appends new
messages without duplicates and sends a read receipt for every new message
written by someone else.

Errors never stop the loop: they are logged and the next poll starts after
the usual delay. Call ``stop()`` to end it; a request already in flight
completes, but its result is discarded.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import httpx

from edubridge.client.api import POLL_TIMEOUT_MS, ApiError, EduBridgeClient

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0

MessageCallback = Callable[[list[dict[str, Any]]], Awaitable[None] | None]


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class MessagePoller:
    """
    Long-poll loop for a single thread.

    Args:
        client: API client authenticated as ``current_user_id``
        thread_id: Thread to follow
        current_user_id: ID of the signed-in user
        initial_messages: The page of messages already displayed
        on_messages: Called with each batch of new messages
        poll_timeout_ms: Server-side wait per poll
        retry_delay: Pause between polls, also after errors
    """

    def __init__(
        self,
        client: EduBridgeClient,
        thread_id: str,
        current_user_id: str,
        initial_messages: Iterable[dict[str, Any]] = (),
        *,
        on_messages: MessageCallback | None = None,
        poll_timeout_ms: int = POLL_TIMEOUT_MS,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ):
        self.client = client
        self.thread_id = thread_id
        self.current_user_id = current_user_id
        self.on_messages = on_messages
        self.poll_timeout_ms = poll_timeout_ms
        self.retry_delay = retry_delay

        self.messages: list[dict[str, Any]] = list(initial_messages)
        self._seen_ids = {m["id"] for m in self.messages}
        self.last_message_time = max(
            (_parse_timestamp(m["createdAt"]) for m in self.messages),
            default=datetime.now(UTC),
        )
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        self._stopped = True

    async def poll_once(self) -> list[dict[str, Any]]:
        """
        Run one poll and process its result.

        Returns:
            The messages that were new to this poller
        """
        batch = await self.client.poll_new_messages(
            self.thread_id, self.last_message_time, self.poll_timeout_ms
        )
        if self._stopped or not batch:
            return []

        new_messages = [m for m in batch if m["id"] not in self._seen_ids]
        self.last_message_time = max(
            self.last_message_time,
            max(_parse_timestamp(m["createdAt"]) for m in batch),
        )
        if not new_messages:
            return []

        self.messages.extend(new_messages)
        self._seen_ids.update(m["id"] for m in new_messages)

        for message in new_messages:
            if message["senderId"] != self.current_user_id:
                await self._mark_read(message["id"])

        if self.on_messages is not None:
            result = self.on_messages(new_messages)
            if inspect.isawaitable(result):
                await result

        return new_messages

    async def _mark_read(self, message_id: str) -> None:
        try:
            await self.client.mark_message_as_read(message_id)
        except (httpx.HTTPError, ApiError) as e:
            logger.warning(f"Failed to mark message {message_id} as read: {e}")

    async def run(self) -> None:
        """Poll until ``stop()`` is called."""
        logger.debug(f"Polling thread {self.thread_id}")

        while not self._stopped:
            try:
                await self.poll_once()
            except (httpx.HTTPError, ApiError) as e:
                logger.warning(f"Poll on thread {self.thread_id} failed: {e}")

            if self._stopped:
                break
            await asyncio.sleep(self.retry_delay)

        logger.debug(f"Stopped polling thread {self.thread_id}")
