"""
EduBridge API Client

Async HTTP client for the EduBridge API, built on httpx. Responses are
unwrapped from the ``{success, data, error}`` envelope; failures raise
ApiError.
"""

import logging
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
POLL_TIMEOUT_MS = 30_000
POLL_GUARD_SECONDS = 5.0


class ApiError(Exception):
    """Raised when the API answers with an error envelope or status."""

    def __init__(self, status_code: int, message: str, code: str | None = None):
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code}: {message}")


class EduBridgeClient:
    """
    Thin async client for the EduBridge API.

    Usage:
        async with EduBridgeClient("https://api.example.org", token) as client:
            threads = await client.get_user_threads()
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "EduBridgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: httpx.Timeout | float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {"json": json, "params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout

        response = await self._client.request(method, path, **kwargs)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("success", False):
            message = body.get("error") or response.reason_phrase or "Request failed"
            raise ApiError(response.status_code, message, body.get("code"))

        return body.get("data")

    # Threads

    async def get_user_threads(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/threads")
        return data["threads"]

    async def get_or_create_direct_thread(self, other_user_id: str) -> dict[str, Any]:
        return await self._request("POST", "/threads", json={"otherUserId": other_user_id})

    async def get_or_create_group_thread(self, group_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/groups/{group_id}/thread")

    async def get_or_create_class_thread(self, class_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/classes/{class_id}/thread")

    # Messages

    async def get_thread_messages(
        self, thread_id: str, limit: int = 50, offset: int = 0
    ) -> list[dict[str, Any]]:
        data = await self._request(
            "GET",
            f"/threads/{thread_id}/messages",
            params={"limit": limit, "offset": offset},
        )
        return data["messages"]

    async def send_message(
        self, thread_id: str, content: str, parent_message_id: str | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": content}
        if parent_message_id:
            payload["parentMessageId"] = parent_message_id
        return await self._request("POST", f"/threads/{thread_id}/messages", json=payload)

    async def mark_message_as_read(self, message_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/messages/{message_id}/read")

    async def poll_new_messages(
        self,
        thread_id: str,
        since: datetime,
        timeout_ms: int = POLL_TIMEOUT_MS,
        guard_seconds: float = POLL_GUARD_SECONDS,
    ) -> list[dict[str, Any]]:
        """
        Long poll a thread for messages created after ``since``.

        The request is allowed ``timeout_ms`` plus a guard before it times
        out client-side; a timeout is reported as no new messages.
        """
        try:
            data = await self._request(
                "GET",
                f"/threads/{thread_id}/poll",
                params={"since": since.isoformat(), "timeout": timeout_ms},
                timeout=timeout_ms / 1000 + guard_seconds,
            )
        except httpx.TimeoutException:
            logger.debug(f"Poll on thread {thread_id} timed out client-side")
            return []
        return data["messages"]
