"""Class and group schemas."""

from datetime import datetime

from pydantic import Field

from edubridge.modules.classes.models import MembershipRole
from edubridge.modules.shared.schemas import CamelModel


class ClassResponse(CamelModel):
    """A class as seen by one of its members."""

    id: str
    school_id: str
    school_name: str
    name: str
    type: str | None = None
    description: str | None = None
    member_count: int
    role: MembershipRole
    can_post_news: bool
    can_create_groups: bool
    can_delete_messages: bool
    created_at: datetime


class ClassListData(CamelModel):
    classes: list[ClassResponse]
    count: int


class GroupResponse(CamelModel):
    id: str
    class_id: str
    owner_id: str | None = None
    name: str
    description: str | None = None
    member_count: int
    created_at: datetime


class GroupListData(CamelModel):
    groups: list[GroupResponse]
    count: int


class CreateGroupRequest(CamelModel):
    name: str = Field(..., max_length=200)
    description: str | None = None


class ClassMemberResponse(CamelModel):
    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    role: MembershipRole


class ClassMemberListData(CamelModel):
    members: list[ClassMemberResponse]
    count: int


class AddGroupMemberRequest(CamelModel):
    user_id: str = Field(..., min_length=1)


class GroupMemberResponse(CamelModel):
    group_id: str
    user_id: str
    joined_at: datetime
    added_to_thread: bool
