"""
Access module - Membership and authorization checks shared by services.

Every check re-reads membership from storage; nothing is cached between
requests.
"""

from edubridge.modules.access.checks import (
    CLASS_ACCESS_DENIED,
    GROUP_CREATION_DENIED,
    THREAD_ACCESS_DENIED,
    can_post_to_class,
    can_post_to_school,
    get_class_membership,
    has_school_access,
    require_class_membership,
    require_group_creation,
    require_school_access,
    require_thread_participant,
)

__all__ = [
    "CLASS_ACCESS_DENIED",
    "GROUP_CREATION_DENIED",
    "THREAD_ACCESS_DENIED",
    "can_post_to_class",
    "can_post_to_school",
    "get_class_membership",
    "has_school_access",
    "require_class_membership",
    "require_group_creation",
    "require_school_access",
    "require_thread_participant",
]
