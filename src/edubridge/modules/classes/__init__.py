"""
Classes module - Classes, class memberships, groups and group memberships.
"""

from edubridge.modules.classes.models import (
    ClassMembership,
    Group,
    GroupMembership,
    MembershipRole,
    SchoolClass,
)

__all__ = [
    "ClassMembership",
    "Group",
    "GroupMembership",
    "MembershipRole",
    "SchoolClass",
]
