"""
News Models

News posts are published to a whole school or to a single class. A post
is either a plain announcement or a poll with options members vote on.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edubridge.modules.shared import BaseModel, utcnow


class NewsScope(str, Enum):
    """Audience of a news post."""

    SCHOOL = "school"
    CLASS = "class"


class NewsPostType(str, Enum):
    ANNOUNCEMENT = "announcement"
    POLL = "poll"


class NewsPost(BaseModel):
    """
    A news post.

    Exactly one of school_id/class_id is set, matching ``scope``.
    """

    __tablename__ = "news_posts"

    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scope: Mapped[NewsScope] = mapped_column(SAEnum(NewsScope, name="news_scope"), nullable=False)
    school_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    class_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type: Mapped[NewsPostType] = mapped_column(
        SAEnum(NewsPostType, name="news_post_type"),
        nullable=False,
        default=NewsPostType.ANNOUNCEMENT,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    poll_options: Mapped[list["PollOption"]] = relationship(
        "PollOption",
        back_populates="news_post",
        order_by="PollOption.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<NewsPost(id={self.id}, type={self.type}, title={self.title})>"


class PollOption(BaseModel):
    """One choice of a poll."""

    __tablename__ = "poll_options"

    news_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("news_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_text: Mapped[str] = mapped_column(String(500), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    news_post: Mapped["NewsPost"] = relationship("NewsPost", back_populates="poll_options")


class PollVote(BaseModel):
    """
    A user's vote on a poll.

    ``news_post_id`` duplicates the option's post so the database can
    enforce one vote per user per poll.
    """

    __tablename__ = "poll_votes"

    poll_option_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("poll_options.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    news_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("news_posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("news_post_id", "user_id", name="uq_poll_votes_post_user"),)


class NewsLike(BaseModel):
    __tablename__ = "news_likes"

    news_post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("news_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("news_post_id", "user_id", name="uq_news_likes_pair"),)
