"""
School Models

Schools are the root scoping unit for access control. Users reach a school
as an admin, through a school-scope capability grant, through a class
membership, or as the parent of a child assigned to one of its classes.
"""

from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from edubridge.modules.shared import BaseModel


class SchoolCapability(str, Enum):
    """Capabilities that can be granted at school scope."""

    POST_NEWS = "post_news"


class School(BaseModel):
    """School model."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    logo: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name})>"


class SchoolAdmin(BaseModel):
    """Administrator of a school."""

    __tablename__ = "school_admins"

    school_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (UniqueConstraint("school_id", "user_id", name="uq_school_admins_pair"),)


class SchoolPermission(BaseModel):
    """A capability granted to a user at school scope."""

    __tablename__ = "school_permissions"

    school_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    capability: Mapped[SchoolCapability] = mapped_column(
        SAEnum(SchoolCapability, name="school_capability"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("school_id", "user_id", "capability", name="uq_school_permissions"),
    )


class Child(BaseModel):
    """A pupil enrolled at a school (not an app user)."""

    __tablename__ = "children"

    school_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)


class ChildClassAssignment(BaseModel):
    """Places a child in a class and links the responsible parent."""

    __tablename__ = "child_class_assignments"

    child_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("children.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
