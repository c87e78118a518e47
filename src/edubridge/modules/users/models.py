"""
User Models

The user row mirrors the identity provider's claims. Its primary key is the
token's ``sub`` claim and it is refreshed on every authenticated request.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from edubridge.modules.shared import BaseModel


class User(BaseModel):
    """
    User identity model.

    Authentication is delegated to Keycloak, so there is no password or
    role column here; realm roles are read from the token when needed.
    """

    __tablename__ = "users"

    username: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    first_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    last_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    phone: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"

    @property
    def full_name(self) -> str:
        """Return user's full name, falling back to username or email."""
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.username or self.email or self.id

    @property
    def sort_key(self) -> tuple[str, str]:
        return ((self.last_name or "").lower(), (self.first_name or "").lower())
