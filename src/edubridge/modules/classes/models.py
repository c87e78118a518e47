"""
Class and Group Models

A class belongs to a school. Membership rows carry the member's role and
the class-scope capability set. Groups ("channels") live inside a class.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edubridge.modules.shared import BaseModel, utcnow


class MembershipRole(str, Enum):
    """Role of a user within a class."""

    TEACHER = "teacher"
    PARENT = "parent"
    STUDENT = "student"
    ADMIN = "admin"


class SchoolClass(BaseModel):
    """A class within a school."""

    __tablename__ = "classes"

    school_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, name={self.name})>"


class ClassMembership(BaseModel):
    """
    Links a user to a class.

    The three flags are the class-scope capability set. (user, class) is not
    unique at the database level; lookups take the earliest row.
    """

    __tablename__ = "class_memberships"

    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[MembershipRole] = mapped_column(
        SAEnum(MembershipRole, name="membership_role"),
        nullable=False,
        default=MembershipRole.PARENT,
    )
    can_post_news: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_create_groups: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_delete_messages: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("ix_class_memberships_class_user", "class_id", "user_id"),)


class Group(BaseModel):
    """A channel inside a class."""

    __tablename__ = "groups"

    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    memberships: Mapped[list["GroupMembership"]] = relationship(
        "GroupMembership",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name})>"


class GroupMembership(BaseModel):
    """Links a user to a group."""

    __tablename__ = "group_memberships"

    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    group: Mapped["Group"] = relationship("Group", back_populates="memberships")

    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_memberships_pair"),)
