"""
Users module - Identity rows synchronized from Keycloak token claims.
"""

from edubridge.modules.users.models import User
from edubridge.modules.users.repository import UserRepository

__all__ = ["User", "UserRepository"]
