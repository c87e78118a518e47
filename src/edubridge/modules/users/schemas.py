"""User schemas."""

from datetime import datetime

from edubridge.modules.shared.schemas import CamelModel


class UserResponse(CamelModel):
    """Synced user row plus realm roles from the current token."""

    id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    roles: list[str] = []
    created_at: datetime
    updated_at: datetime
