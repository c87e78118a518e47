"""
Authorization Checks

Predicates answering "may user X touch resource Y". ``require_*`` variants
raise AccessDeniedError (403); the others return a value.

Capabilities have one source per scope:
- class scope: the flags on the user's class membership
- school scope: a school admin row or a school_permissions grant
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import AccessDeniedError
from edubridge.modules.classes import repository as classes_repository
from edubridge.modules.classes.models import ClassMembership
from edubridge.modules.messaging import repository as messaging_repository
from edubridge.modules.schools.models import SchoolCapability
from edubridge.modules.schools.repository import SchoolRepository

logger = logging.getLogger(__name__)

CLASS_ACCESS_DENIED = "User does not have access to this class"
GROUP_CREATION_DENIED = "User does not have permission to create groups"
THREAD_ACCESS_DENIED = "User does not have access to this thread"
SCHOOL_ACCESS_DENIED = "User does not have access to this school"


async def get_class_membership(
    db: AsyncSession, class_id: str, user_id: str
) -> ClassMembership | None:
    """Return the user's membership in a class, or None."""
    return await classes_repository.get_membership(db, class_id, user_id)


async def require_class_membership(
    db: AsyncSession,
    class_id: str,
    user_id: str,
    message: str = CLASS_ACCESS_DENIED,
) -> ClassMembership:
    """
    Require that the user is a member of the class.

    Raises:
        AccessDeniedError: If no membership row exists
    """
    membership = await get_class_membership(db, class_id, user_id)
    if membership is None:
        logger.warning(f"Class access denied: user={user_id}, class={class_id}")
        raise AccessDeniedError(message, "CLASS_ACCESS_DENIED")
    return membership


async def require_group_creation(db: AsyncSession, class_id: str, user_id: str) -> ClassMembership:
    """
    Require class membership with the group-creation capability.

    Distinguishes "no access" from "no permission" through the error message.
    """
    membership = await require_class_membership(db, class_id, user_id)
    if not membership.can_create_groups:
        logger.warning(f"Group creation denied: user={user_id}, class={class_id}")
        raise AccessDeniedError(GROUP_CREATION_DENIED, "GROUP_CREATION_DENIED")
    return membership


async def require_thread_participant(db: AsyncSession, thread_id: str, user_id: str) -> None:
    """
    Require a participant row for (thread, user).

    Participant rows are snapshots of group/class membership, so a user who
    joined after the thread was created is rejected until the participant
    repair has added them.
    """
    if not await messaging_repository.is_participant(db, thread_id, user_id):
        logger.warning(f"Thread access denied: user={user_id}, thread={thread_id}")
        raise AccessDeniedError(THREAD_ACCESS_DENIED, "THREAD_ACCESS_DENIED")


async def has_school_access(db: AsyncSession, school_id: str, user_id: str) -> bool:
    """True if the user reaches the school through any membership path."""
    return (
        await SchoolRepository.is_school_admin(db, school_id, user_id)
        or await SchoolRepository.has_any_permission(db, school_id, user_id)
        or await SchoolRepository.is_class_member_in_school(db, school_id, user_id)
        or await SchoolRepository.is_parent_in_school(db, school_id, user_id)
    )


async def require_school_access(db: AsyncSession, school_id: str, user_id: str) -> None:
    if not await has_school_access(db, school_id, user_id):
        logger.warning(f"School access denied: user={user_id}, school={school_id}")
        raise AccessDeniedError(SCHOOL_ACCESS_DENIED, "SCHOOL_ACCESS_DENIED")


async def can_post_to_school(db: AsyncSession, user_id: str, school_id: str) -> bool:
    """School admins and holders of the post_news grant may post school news."""
    if await SchoolRepository.is_school_admin(db, school_id, user_id):
        return True
    return await SchoolRepository.has_capability(
        db, school_id, user_id, SchoolCapability.POST_NEWS
    )


async def can_post_to_class(db: AsyncSession, user_id: str, class_id: str) -> bool:
    """Members whose membership carries can_post_news may post class news."""
    membership = await get_class_membership(db, class_id, user_id)
    return membership is not None and membership.can_post_news
