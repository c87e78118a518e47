"""
Schools module - School scoping, admins and school-scope capabilities.
"""

from edubridge.modules.schools.models import (
    Child,
    ChildClassAssignment,
    School,
    SchoolAdmin,
    SchoolCapability,
    SchoolPermission,
)
from edubridge.modules.schools.repository import SchoolRepository

__all__ = [
    "Child",
    "ChildClassAssignment",
    "School",
    "SchoolAdmin",
    "SchoolCapability",
    "SchoolPermission",
    "SchoolRepository",
]
