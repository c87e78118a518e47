"""
Schools Service Layer

Resolves which schools a user can see. A user reaches a school through
any of four paths; the result is the de-duplicated union sorted by name.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.schools.models import School
from edubridge.modules.schools.repository import SchoolRepository
from edubridge.modules.schools.schemas import SchoolResponse

logger = logging.getLogger(__name__)


async def get_user_schools(db: AsyncSession, user_id: str) -> list[SchoolResponse]:
    """
    Get all schools that a user has access to.

    Combines schools reached through class memberships, school
    permissions, school admin rows and parent-child assignments.

    Args:
        db: Database session
        user_id: Caller's user ID

    Returns:
        Unique schools sorted by name
    """
    sources = [
        await SchoolRepository.get_schools_by_class_membership(db, user_id),
        await SchoolRepository.get_schools_by_permissions(db, user_id),
        await SchoolRepository.get_schools_by_admin_role(db, user_id),
        await SchoolRepository.get_schools_by_parent_role(db, user_id),
    ]

    schools: dict[str, School] = {}
    for source in sources:
        for school in source:
            schools.setdefault(school.id, school)

    ordered = sorted(schools.values(), key=lambda s: s.name.lower())
    logger.debug(f"User {user_id} can access {len(ordered)} school(s)")
    return [SchoolResponse.model_validate(school) for school in ordered]
