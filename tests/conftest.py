"""
Shared fixtures for the EduBridge API tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from edubridge.core.database import Base
from edubridge.modules.classes.models import ClassMembership, Group, MembershipRole
from edubridge.modules.messaging.models import Message, Thread, ThreadType
from edubridge.modules.news import models as news_models  # noqa: F401
from edubridge.modules.schools import models as schools_models  # noqa: F401
from edubridge.modules.users.models import User


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    # MagicMock supports "async with" and does not suppress exceptions
    db.begin_nested = MagicMock()
    return db


@pytest.fixture
def make_thread():
    """Build a thread model double."""

    def _make(
        thread_type: ThreadType = ThreadType.DIRECT,
        thread_id: str | None = None,
        group_id: str | None = None,
        class_id: str | None = None,
        direct_key: str | None = None,
    ):
        thread = MagicMock(spec=Thread)
        thread.id = thread_id or str(uuid4())
        thread.type = thread_type
        thread.group_id = group_id
        thread.class_id = class_id
        thread.direct_key = direct_key
        thread.created_at = datetime(2026, 1, 10, 9, 0, tzinfo=UTC)
        thread.updated_at = datetime(2026, 1, 10, 9, 0, tzinfo=UTC)
        return thread

    return _make


@pytest.fixture
def make_message():
    """Build a message model double."""

    def _make(
        thread_id: str,
        sender_id: str,
        content: str = "Hello",
        message_id: str | None = None,
        parent_message_id: str | None = None,
        created_at: datetime | None = None,
        deleted: bool = False,
        replies: list | None = None,
    ):
        message = MagicMock(spec=Message)
        message.id = message_id or str(uuid4())
        message.thread_id = thread_id
        message.sender_id = sender_id
        message.content = content
        message.parent_message_id = parent_message_id
        message.created_at = created_at or datetime(2026, 1, 10, 9, 30, tzinfo=UTC)
        message.updated_at = message.created_at
        message.deleted_at = message.created_at if deleted else None
        message.is_deleted = deleted
        message.replies = replies or []
        return message

    return _make


@pytest.fixture
def make_user():
    """Build a user model double."""

    def _make(
        user_id: str | None = None,
        first_name: str | None = "Ama",
        last_name: str | None = "Mensah",
        email: str | None = None,
    ):
        user = MagicMock(spec=User)
        user.id = user_id or str(uuid4())
        user.first_name = first_name
        user.last_name = last_name
        user.email = email or f"{(first_name or 'user').lower()}@school.test"
        user.username = None
        user.sort_key = ((last_name or "").lower(), (first_name or "").lower())
        return user

    return _make


@pytest.fixture
def make_membership():
    """Build a class membership double."""

    def _make(
        class_id: str,
        user_id: str,
        role: MembershipRole = MembershipRole.PARENT,
        can_post_news: bool = False,
        can_create_groups: bool = False,
        can_delete_messages: bool = False,
    ):
        membership = MagicMock(spec=ClassMembership)
        membership.id = str(uuid4())
        membership.class_id = class_id
        membership.user_id = user_id
        membership.role = role
        membership.can_post_news = can_post_news
        membership.can_create_groups = can_create_groups
        membership.can_delete_messages = can_delete_messages
        return membership

    return _make


@pytest.fixture
def make_group():
    """Build a group model double."""

    def _make(class_id: str, group_id: str | None = None, name: str = "Year 5 Parents"):
        group = MagicMock(spec=Group)
        group.id = group_id or str(uuid4())
        group.class_id = class_id
        group.owner_id = str(uuid4())
        group.name = name
        group.description = None
        group.created_at = datetime(2026, 1, 5, 8, 0, tzinfo=UTC)
        return group

    return _make


@pytest_asyncio.fixture
async def db_session():
    """
    Session on a fresh in-memory SQLite database with the full schema.

    Used by the storage tests that exercise repository SQL and database
    constraints instead of mocking them.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # SQLAlchemy emits BEGIN itself so SAVEPOINTs nest correctly
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()
