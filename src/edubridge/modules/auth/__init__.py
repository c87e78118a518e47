"""Authentication module."""

from edubridge.modules.auth.router import router
from edubridge.modules.auth.schemas import TokenProfile

__all__ = ["router", "TokenProfile"]
