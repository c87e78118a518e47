"""
Classes Service Layer

Business logic for classes, groups and group membership.

Group membership changes made here are mirrored into the group's thread,
so a member added through the API can read the group conversation right
away.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import (
    AccessDeniedError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from edubridge.modules import access
from edubridge.modules.classes import repository
from edubridge.modules.classes.schemas import (
    ClassMemberResponse,
    ClassResponse,
    GroupMemberResponse,
    GroupResponse,
)
from edubridge.modules.messaging import service as messaging_service
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


async def get_user_classes(db: AsyncSession, user_id: str) -> list[ClassResponse]:
    """
    List the classes a user belongs to.

    When a user has several membership rows for one class, the earliest
    row supplies the role and capability flags.
    """
    rows = await repository.get_user_memberships(db, user_id)

    seen: dict[str, tuple] = {}
    for membership, school_class, school in rows:
        seen.setdefault(school_class.id, (membership, school_class, school))

    counts = await repository.count_members_by_class(db, list(seen))

    return [
        ClassResponse(
            id=school_class.id,
            school_id=school.id,
            school_name=school.name,
            name=school_class.name,
            type=school_class.type,
            description=school_class.description,
            member_count=counts.get(school_class.id, 0),
            role=membership.role,
            can_post_news=membership.can_post_news,
            can_create_groups=membership.can_create_groups,
            can_delete_messages=membership.can_delete_messages,
            created_at=school_class.created_at,
        )
        for membership, school_class, school in seen.values()
    ]


async def get_class_groups(db: AsyncSession, class_id: str, user_id: str) -> list[GroupResponse]:
    """
    List the groups of a class that the caller belongs to.

    Raises:
        AccessDeniedError: If the caller is not a class member
    """
    await access.require_class_membership(db, class_id, user_id)

    groups = await repository.get_user_groups_in_class(db, class_id, user_id)
    counts = await repository.count_members_by_group(db, [g.id for g in groups])

    return [
        GroupResponse(
            id=group.id,
            class_id=group.class_id,
            owner_id=group.owner_id,
            name=group.name,
            description=group.description,
            member_count=counts.get(group.id, 0),
            created_at=group.created_at,
        )
        for group in groups
    ]


async def create_group(
    db: AsyncSession,
    class_id: str,
    user_id: str,
    name: str,
    description: str | None = None,
) -> GroupResponse:
    """
    Create a group in a class. The creator becomes owner and first member.

    Raises:
        AccessDeniedError: If the caller is not a member or lacks the
            group-creation capability
        InvalidRequestError: If the name is blank
    """
    await access.require_group_creation(db, class_id, user_id)

    name = (name or "").strip()
    if not name:
        raise InvalidRequestError("Group name is required", "GROUP_NAME_REQUIRED")

    group = await repository.create_group(
        db,
        class_id=class_id,
        owner_id=user_id,
        name=name,
        description=description.strip() if description else None,
    )
    await db.commit()

    logger.info(f"Group {group.id} created in class {class_id} by {user_id}")

    return GroupResponse(
        id=group.id,
        class_id=group.class_id,
        owner_id=group.owner_id,
        name=group.name,
        description=group.description,
        member_count=1,
        created_at=group.created_at,
    )


async def get_class_members(
    db: AsyncSession,
    class_id: str,
    user_id: str,
    exclude_group_id: str | None = None,
) -> list[ClassMemberResponse]:
    """
    List a class's members, optionally leaving out a group's members.

    Used to pick people to add to a group.

    Raises:
        AccessDeniedError: If the caller is not a class member
    """
    await access.require_class_membership(db, class_id, user_id)

    memberships = await repository.get_class_memberships(db, class_id)

    excluded: set[str] = set()
    if exclude_group_id:
        excluded = set(await repository.get_group_member_ids(db, exclude_group_id))

    by_user = {}
    for membership in memberships:
        if membership.user_id not in excluded:
            by_user.setdefault(membership.user_id, membership)

    users = {u.id: u for u in await UserRepository.get_by_ids(db, list(by_user))}

    members = [
        ClassMemberResponse(
            user_id=member_id,
            first_name=users[member_id].first_name,
            last_name=users[member_id].last_name,
            email=users[member_id].email,
            role=membership.role,
        )
        for member_id, membership in by_user.items()
        if member_id in users
    ]
    members.sort(key=lambda m: ((m.last_name or "").lower(), (m.first_name or "").lower()))
    return members


async def add_user_to_group(
    db: AsyncSession,
    group_id: str,
    target_user_id: str,
    requester_id: str,
) -> GroupMemberResponse:
    """
    Add a class member to a group.

    If the group already has a thread, the new member also becomes a
    participant of it in the same transaction.

    Raises:
        NotFoundError: If the group does not exist
        AccessDeniedError: If the requester is not a member of the class
        InvalidRequestError: If the target is not a member of the class
        ConflictError: If the target is already in the group
    """
    group = await repository.get_group(db, group_id)
    if group is None:
        raise NotFoundError("Group not found", "GROUP_NOT_FOUND")

    if await access.get_class_membership(db, group.class_id, requester_id) is None:
        raise AccessDeniedError("You do not have access to this class", "CLASS_ACCESS_DENIED")

    if await access.get_class_membership(db, group.class_id, target_user_id) is None:
        raise InvalidRequestError(
            "Target user is not a member of this class", "TARGET_NOT_CLASS_MEMBER"
        )

    if await repository.is_group_member(db, group_id, target_user_id):
        raise ConflictError("User is already a member of this group", "ALREADY_GROUP_MEMBER")

    membership = await repository.add_group_member(db, group_id, target_user_id)
    added_to_thread = await messaging_service.add_group_member_to_thread(
        db, group_id, target_user_id
    )
    await db.commit()

    logger.info(f"User {target_user_id} added to group {group_id} by {requester_id}")

    return GroupMemberResponse(
        group_id=group_id,
        user_id=target_user_id,
        joined_at=membership.joined_at,
        added_to_thread=added_to_thread,
    )
