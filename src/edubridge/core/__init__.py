"""
Core module - Configuration, database, errors, authentication and scheduling.
"""

from edubridge.core.config import get_settings, settings
from edubridge.core.database import Base, close_db, get_db, init_db
from edubridge.core.errors import (
    AccessDeniedError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    ServiceError,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Errors
    "ServiceError",
    "InvalidRequestError",
    "AccessDeniedError",
    "NotFoundError",
    "ConflictError",
]
