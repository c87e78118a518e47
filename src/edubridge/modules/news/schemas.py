"""News schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field

from edubridge.modules.news.models import NewsPostType, NewsScope
from edubridge.modules.shared.schemas import CamelModel


class CreateNewsPostRequest(CamelModel):
    scope: NewsScope
    school_id: str | None = None
    class_id: str | None = None
    type: NewsPostType = NewsPostType.ANNOUNCEMENT
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    poll_options: list[str] | None = None
    attachments: list[Any] | None = None


class PollOptionResponse(CamelModel):
    id: str
    option_text: str
    position: int
    vote_count: int = 0
    has_voted: bool = False


class NewsPostResponse(CamelModel):
    """A news post with its aggregates as seen by the caller."""

    id: str
    author_id: str
    scope: NewsScope
    school_id: str | None = None
    class_id: str | None = None
    type: NewsPostType
    title: str
    content: str
    attachments: list[Any] = []
    published_at: datetime
    created_at: datetime
    like_count: int = 0
    is_liked_by_user: bool = False
    poll_options: list[PollOptionResponse] | None = None


class NewsListData(CamelModel):
    posts: list[NewsPostResponse]
    count: int


class LikeResponse(CamelModel):
    liked: bool
    like_count: int


class VoteResponse(CamelModel):
    voted: bool
    message: str


class DeleteNewsResponse(CamelModel):
    message: str


class PermissionResponse(CamelModel):
    can_post: bool
