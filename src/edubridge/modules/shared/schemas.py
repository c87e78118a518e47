"""
Shared API schemas.

All payloads use camelCase on the wire and are wrapped in the
``{success, data, error}`` envelope.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema that serializes field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Standard response envelope."""

    success: bool = True
    data: T | None = None
    error: str | None = None


class UserSummary(CamelModel):
    """Minimal user information embedded in other payloads."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


def ok(data: T) -> ApiResponse[T]:
    """Wrap ``data`` in a successful envelope."""
    return ApiResponse(success=True, data=data)
