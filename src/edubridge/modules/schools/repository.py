"""
School Repository

Database operations for schools and the different ways a user is attached
to one.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.classes.models import ClassMembership, SchoolClass
from edubridge.modules.schools.models import (
    Child,
    ChildClassAssignment,
    School,
    SchoolAdmin,
    SchoolCapability,
    SchoolPermission,
)

logger = logging.getLogger(__name__)


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str) -> School | None:
        """
        Get a school by ID.

        Args:
            db: Database session
            school_id: School ID

        Returns:
            School instance or None if not found
        """
        return await db.get(School, school_id)

    @staticmethod
    async def get_schools_by_class_membership(db: AsyncSession, user_id: str) -> list[School]:
        """Schools reachable through the user's class memberships."""
        result = await db.execute(
            select(School)
            .join(SchoolClass, SchoolClass.school_id == School.id)
            .join(ClassMembership, ClassMembership.class_id == SchoolClass.id)
            .where(ClassMembership.user_id == user_id)
            .distinct()
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_schools_by_permissions(db: AsyncSession, user_id: str) -> list[School]:
        """Schools where the user holds any school-scope capability."""
        result = await db.execute(
            select(School)
            .join(SchoolPermission, SchoolPermission.school_id == School.id)
            .where(SchoolPermission.user_id == user_id)
            .distinct()
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_schools_by_admin_role(db: AsyncSession, user_id: str) -> list[School]:
        """Schools the user administers."""
        result = await db.execute(
            select(School)
            .join(SchoolAdmin, SchoolAdmin.school_id == School.id)
            .where(SchoolAdmin.user_id == user_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_schools_by_parent_role(db: AsyncSession, user_id: str) -> list[School]:
        """Schools where one of the user's children is assigned to a class."""
        result = await db.execute(
            select(School)
            .join(Child, Child.school_id == School.id)
            .join(ChildClassAssignment, ChildClassAssignment.child_id == Child.id)
            .where(ChildClassAssignment.parent_id == user_id)
            .distinct()
        )
        return list(result.scalars().all())

    @staticmethod
    async def is_school_admin(db: AsyncSession, school_id: str, user_id: str) -> bool:
        result = await db.execute(
            select(SchoolAdmin.id)
            .where(SchoolAdmin.school_id == school_id, SchoolAdmin.user_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def has_capability(
        db: AsyncSession,
        school_id: str,
        user_id: str,
        capability: SchoolCapability,
    ) -> bool:
        result = await db.execute(
            select(SchoolPermission.id)
            .where(
                SchoolPermission.school_id == school_id,
                SchoolPermission.user_id == user_id,
                SchoolPermission.capability == capability,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def has_any_permission(db: AsyncSession, school_id: str, user_id: str) -> bool:
        result = await db.execute(
            select(SchoolPermission.id)
            .where(SchoolPermission.school_id == school_id, SchoolPermission.user_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def is_class_member_in_school(db: AsyncSession, school_id: str, user_id: str) -> bool:
        result = await db.execute(
            select(ClassMembership.id)
            .join(SchoolClass, SchoolClass.id == ClassMembership.class_id)
            .where(SchoolClass.school_id == school_id, ClassMembership.user_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def is_parent_in_school(db: AsyncSession, school_id: str, user_id: str) -> bool:
        result = await db.execute(
            select(ChildClassAssignment.id)
            .join(Child, Child.id == ChildClassAssignment.child_id)
            .where(Child.school_id == school_id, ChildClassAssignment.parent_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_member_user_ids(db: AsyncSession, school_id: str) -> set[str]:
        """
        Collect every user attached to a school.

        Includes admins, capability holders, class members of the school's
        classes and parents of children assigned to its classes.
        """
        admins = await db.execute(
            select(SchoolAdmin.user_id).where(SchoolAdmin.school_id == school_id)
        )
        permitted = await db.execute(
            select(SchoolPermission.user_id).where(SchoolPermission.school_id == school_id)
        )
        members = await db.execute(
            select(ClassMembership.user_id)
            .join(SchoolClass, SchoolClass.id == ClassMembership.class_id)
            .where(SchoolClass.school_id == school_id)
        )
        parents = await db.execute(
            select(ChildClassAssignment.parent_id)
            .join(Child, Child.id == ChildClassAssignment.child_id)
            .where(Child.school_id == school_id)
        )

        user_ids: set[str] = set()
        for result in (admins, permitted, members, parents):
            user_ids.update(result.scalars().all())
        return user_ids
