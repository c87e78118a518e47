"""School schemas."""

from datetime import datetime

from edubridge.modules.shared.schemas import CamelModel


class SchoolResponse(CamelModel):
    id: str
    name: str
    address: str | None = None
    logo: str | None = None
    created_at: datetime
    updated_at: datetime


class SchoolListData(CamelModel):
    schools: list[SchoolResponse]
    count: int
