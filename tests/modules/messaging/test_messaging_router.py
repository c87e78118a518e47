"""
API tests for the messaging endpoints.

The service layer is patched; these tests cover request parsing, the
response envelope, error mapping and the poll timeout clamp.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.config import settings
from edubridge.core.database import get_db
from edubridge.core.errors import AccessDeniedError, InvalidRequestError
from edubridge.main import app
from edubridge.modules.messaging.models import MessageStatus, ThreadType
from edubridge.modules.messaging.schemas import MessageResponse, ThreadResponse

ROUTER = "edubridge.modules.messaging.router"

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"
NOW = datetime(2026, 1, 10, 9, 0, tzinfo=UTC)


@pytest.fixture
def client(mock_db):
    async def override_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(id=ALICE, username="alice")
    yield TestClient(app)
    app.dependency_overrides.clear()


def _message(message_id: str = "m1", content: str = "Hello") -> MessageResponse:
    return MessageResponse(
        id=message_id,
        thread_id="thread-1",
        sender_id=ALICE,
        content=content,
        status=MessageStatus.SENT,
        created_at=NOW,
        updated_at=NOW,
    )


class TestDirectThreadEndpoint:
    """Tests for POST /api/threads."""

    def test_returns_thread_in_envelope(self, client):
        thread = ThreadResponse(
            id="thread-1",
            type=ThreadType.DIRECT,
            participant_ids=[ALICE, BOB],
            created_at=NOW,
            updated_at=NOW,
        )
        with patch(f"{ROUTER}.service.get_or_create_direct_thread", AsyncMock(return_value=thread)):
            response = client.post("/api/threads", json={"otherUserId": BOB})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["data"]["id"] == "thread-1"
        assert body["data"]["participantIds"] == [ALICE, BOB]

    def test_self_thread_maps_to_400(self, client):
        error = InvalidRequestError("Cannot start a conversation with yourself", "SELF_THREAD")
        with patch(
            f"{ROUTER}.service.get_or_create_direct_thread", AsyncMock(side_effect=error)
        ):
            response = client.post("/api/threads", json={"otherUserId": ALICE})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "data": None,
            "error": "Cannot start a conversation with yourself",
            "code": "SELF_THREAD",
        }

    def test_missing_body_field_is_validation_error(self, client):
        response = client.post("/api/threads", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"


class TestMessageEndpoints:
    """Tests for message listing, sending and read receipts."""

    def test_send_returns_201(self, client):
        send = AsyncMock(return_value=_message())
        with patch(f"{ROUTER}.service.send_message", send):
            response = client.post(
                "/api/threads/thread-1/messages",
                json={"content": "Hello", "parentMessageId": None},
            )

        assert response.status_code == 201
        assert response.json()["data"]["status"] == MessageStatus.SENT.value
        assert send.call_args.args[1:4] == ("thread-1", ALICE, "Hello")

    def test_non_participant_maps_to_403(self, client):
        error = AccessDeniedError(
            "User does not have access to this thread", "THREAD_ACCESS_DENIED"
        )
        with patch(f"{ROUTER}.service.get_thread_messages", AsyncMock(side_effect=error)):
            response = client.get("/api/threads/thread-1/messages")

        assert response.status_code == 403
        assert response.json()["error"] == "User does not have access to this thread"

    def test_list_passes_paging(self, client):
        listing = AsyncMock(return_value=[_message("m1"), _message("m2")])
        with patch(f"{ROUTER}.service.get_thread_messages", listing):
            response = client.get("/api/threads/thread-1/messages?limit=2&offset=4")

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 2
        listing.assert_called_once()
        assert listing.call_args.args[1:] == ("thread-1", ALICE, 2, 4)

    def test_limit_out_of_range(self, client):
        response = client.get("/api/threads/thread-1/messages?limit=0")

        assert response.status_code == 400


class TestPollEndpoint:
    """Tests for GET /api/threads/{thread_id}/poll."""

    def test_timeout_clamped_to_maximum(self, client):
        poll = AsyncMock(return_value=[])
        with patch(f"{ROUTER}.service.poll_new_messages", poll):
            response = client.get(
                "/api/threads/thread-1/poll",
                params={"since": "2026-01-10T09:00:00Z", "timeout": 10_000_000},
            )

        assert response.status_code == 200
        assert response.json()["data"] == {"messages": [], "count": 0}
        assert poll.call_args.args[4] == settings.poll_max_timeout_ms

    def test_negative_timeout_becomes_zero(self, client):
        poll = AsyncMock(return_value=[])
        with patch(f"{ROUTER}.service.poll_new_messages", poll):
            client.get(
                "/api/threads/thread-1/poll",
                params={"since": "2026-01-10T09:00:00Z", "timeout": -5},
            )

        assert poll.call_args.args[4] == 0

    def test_default_timeout(self, client):
        poll = AsyncMock(return_value=[_message("m9")])
        with patch(f"{ROUTER}.service.poll_new_messages", poll):
            response = client.get(
                "/api/threads/thread-1/poll", params={"since": "2026-01-10T09:00:00Z"}
            )

        assert response.json()["data"]["messages"][0]["id"] == "m9"
        assert poll.call_args.args[3] == NOW
        assert poll.call_args.args[4] == settings.poll_default_timeout_ms

    def test_since_required(self, client):
        response = client.get("/api/threads/thread-1/poll")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
