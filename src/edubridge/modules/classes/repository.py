"""
Classes Repository

Database operations for classes, class memberships, groups and group
memberships. Functions only flush; the service layer owns commits.
"""

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.classes.models import ClassMembership, Group, GroupMembership, SchoolClass
from edubridge.modules.schools.models import School


async def get_class(db: AsyncSession, class_id: str) -> SchoolClass | None:
    """Get class by ID."""
    return await db.get(SchoolClass, class_id)


async def get_membership(db: AsyncSession, class_id: str, user_id: str) -> ClassMembership | None:
    """Earliest membership row for (class, user), tolerating duplicates."""
    result = await db.execute(
        select(ClassMembership)
        .where(ClassMembership.class_id == class_id, ClassMembership.user_id == user_id)
        .order_by(ClassMembership.created_at)
        .limit(1)
    )
    return result.scalars().first()


async def get_user_memberships(
    db: AsyncSession, user_id: str
) -> list[tuple[ClassMembership, SchoolClass, School]]:
    """All of a user's memberships with their class and school, oldest first."""
    result = await db.execute(
        select(ClassMembership, SchoolClass, School)
        .join(SchoolClass, SchoolClass.id == ClassMembership.class_id)
        .join(School, School.id == SchoolClass.school_id)
        .where(ClassMembership.user_id == user_id)
        .order_by(ClassMembership.created_at)
    )
    return [tuple(row) for row in result.all()]


async def count_members_by_class(db: AsyncSession, class_ids: list[str]) -> dict[str, int]:
    """Distinct member count per class."""
    if not class_ids:
        return {}
    result = await db.execute(
        select(ClassMembership.class_id, func.count(distinct(ClassMembership.user_id)))
        .where(ClassMembership.class_id.in_(class_ids))
        .group_by(ClassMembership.class_id)
    )
    return {class_id: count for class_id, count in result.all()}


async def get_class_names(db: AsyncSession, class_ids: list[str]) -> dict[str, str]:
    """Class name by ID for several classes."""
    if not class_ids:
        return {}
    result = await db.execute(
        select(SchoolClass.id, SchoolClass.name).where(SchoolClass.id.in_(class_ids))
    )
    return {class_id: name for class_id, name in result.all()}


async def get_class_memberships(db: AsyncSession, class_id: str) -> list[ClassMembership]:
    """All membership rows of a class, oldest first."""
    result = await db.execute(
        select(ClassMembership)
        .where(ClassMembership.class_id == class_id)
        .order_by(ClassMembership.created_at)
    )
    return list(result.scalars().all())


async def get_class_member_ids(db: AsyncSession, class_id: str) -> list[str]:
    """Distinct user IDs of a class's members."""
    result = await db.execute(
        select(ClassMembership.user_id).where(ClassMembership.class_id == class_id).distinct()
    )
    return list(result.scalars().all())


async def get_group(db: AsyncSession, group_id: str) -> Group | None:
    """Get group by ID."""
    return await db.get(Group, group_id)


async def get_group_names(db: AsyncSession, group_ids: list[str]) -> dict[str, str]:
    """Group name by ID for several groups."""
    if not group_ids:
        return {}
    result = await db.execute(select(Group.id, Group.name).where(Group.id.in_(group_ids)))
    return {group_id: name for group_id, name in result.all()}


async def get_user_groups_in_class(db: AsyncSession, class_id: str, user_id: str) -> list[Group]:
    """Groups of a class that the user belongs to, oldest first."""
    result = await db.execute(
        select(Group)
        .join(GroupMembership, GroupMembership.group_id == Group.id)
        .where(Group.class_id == class_id, GroupMembership.user_id == user_id)
        .order_by(Group.created_at)
    )
    return list(result.scalars().all())


async def count_members_by_group(db: AsyncSession, group_ids: list[str]) -> dict[str, int]:
    """Member count per group."""
    if not group_ids:
        return {}
    result = await db.execute(
        select(GroupMembership.group_id, func.count(GroupMembership.id))
        .where(GroupMembership.group_id.in_(group_ids))
        .group_by(GroupMembership.group_id)
    )
    return {group_id: count for group_id, count in result.all()}


async def get_group_member_ids(db: AsyncSession, group_id: str) -> list[str]:
    """User IDs of a group's members."""
    result = await db.execute(
        select(GroupMembership.user_id).where(GroupMembership.group_id == group_id)
    )
    return list(result.scalars().all())


async def is_group_member(db: AsyncSession, group_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(GroupMembership.id)
        .where(GroupMembership.group_id == group_id, GroupMembership.user_id == user_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_group(
    db: AsyncSession,
    *,
    class_id: str,
    owner_id: str,
    name: str,
    description: str | None = None,
) -> Group:
    """Create a group with its owner as the first member."""
    group = Group(
        class_id=class_id,
        owner_id=owner_id,
        name=name,
        description=description,
    )
    group.memberships = [GroupMembership(user_id=owner_id)]
    db.add(group)
    await db.flush()
    return group


async def add_group_member(db: AsyncSession, group_id: str, user_id: str) -> GroupMembership:
    """Add a user to a group."""
    membership = GroupMembership(group_id=group_id, user_id=user_id)
    db.add(membership)
    await db.flush()
    return membership
