"""
User Repository

Database operations for user identity rows.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.shared import utcnow
from edubridge.modules.users.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def upsert_from_claims(
        db: AsyncSession,
        *,
        user_id: str,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> User:
        """
        Create or refresh a user row from token claims.

        Args:
            db: Database session
            user_id: Token ``sub`` claim
            username: ``preferred_username`` claim
            first_name: ``given_name`` claim
            last_name: ``family_name`` claim
            email: ``email`` claim
            phone: ``phone_number`` claim

        Returns:
            The created or updated User
        """
        user = await db.get(User, user_id)

        if user is None:
            user = User(
                id=user_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
            )
            db.add(user)
            await db.flush()
            logger.info(f"Created user from token claims: {user_id}")
            return user

        user.username = username
        user.first_name = first_name
        user.last_name = last_name
        user.email = email
        user.phone = phone
        user.updated_at = utcnow()
        await db.flush()
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        """
        Get a user by ID.

        Args:
            db: Database session
            user_id: User ID (token subject)

        Returns:
            User instance or None if not found
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_ids(db: AsyncSession, user_ids: Iterable[str]) -> list[User]:
        """Get all users whose ID is in ``user_ids``."""
        ids = list(set(user_ids))
        if not ids:
            return []
        result = await db.execute(select(User).where(User.id.in_(ids)))
        return list(result.scalars().all())

    @staticmethod
    async def exists(db: AsyncSession, user_id: str) -> bool:
        """Check whether a user row exists."""
        user = await UserRepository.get_by_id(db, user_id)
        return user is not None
