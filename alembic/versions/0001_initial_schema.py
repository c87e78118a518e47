"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration creates:
1. users, schools and the school attachment tables (admins, permissions,
   children and their class assignments)
2. classes, class memberships, groups and group memberships
3. threads, participants, messages and read receipts
4. news posts, poll options, poll votes and likes

Thread uniqueness (one thread per direct pair, group or class) and the
one-vote-per-poll rule are enforced with unique constraints.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_NAMES = (
    "school_capability",
    "membership_role",
    "thread_type",
    "news_scope",
    "news_post_type",
)


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps shared by every table."""
    return [
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _fk(column: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        column,
        sa.String(length=36),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    # Users and schools
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("logo", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_schools_name", "schools", ["name"])

    op.create_table(
        "school_admins",
        *_base_columns(),
        _fk("school_id", "schools.id"),
        _fk("user_id", "users.id"),
        sa.UniqueConstraint("school_id", "user_id", name="uq_school_admins_pair"),
    )
    op.create_index("ix_school_admins_school_id", "school_admins", ["school_id"])
    op.create_index("ix_school_admins_user_id", "school_admins", ["user_id"])

    op.create_table(
        "school_permissions",
        *_base_columns(),
        _fk("school_id", "schools.id"),
        _fk("user_id", "users.id"),
        sa.Column(
            "capability",
            sa.Enum("POST_NEWS", name="school_capability"),
            nullable=False,
        ),
        sa.UniqueConstraint("school_id", "user_id", "capability", name="uq_school_permissions"),
    )
    op.create_index("ix_school_permissions_school_id", "school_permissions", ["school_id"])
    op.create_index("ix_school_permissions_user_id", "school_permissions", ["user_id"])

    op.create_table(
        "children",
        *_base_columns(),
        _fk("school_id", "schools.id"),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
    )
    op.create_index("ix_children_school_id", "children", ["school_id"])

    # Classes and groups
    op.create_table(
        "classes",
        *_base_columns(),
        _fk("school_id", "schools.id"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])

    op.create_table(
        "child_class_assignments",
        *_base_columns(),
        _fk("child_id", "children.id"),
        _fk("class_id", "classes.id"),
        _fk("parent_id", "users.id"),
    )
    op.create_index("ix_child_class_assignments_child_id", "child_class_assignments", ["child_id"])
    op.create_index("ix_child_class_assignments_class_id", "child_class_assignments", ["class_id"])
    op.create_index(
        "ix_child_class_assignments_parent_id", "child_class_assignments", ["parent_id"]
    )

    op.create_table(
        "class_memberships",
        *_base_columns(),
        _fk("class_id", "classes.id"),
        _fk("user_id", "users.id"),
        sa.Column(
            "role",
            sa.Enum("TEACHER", "PARENT", "STUDENT", "ADMIN", name="membership_role"),
            nullable=False,
        ),
        sa.Column("can_post_news", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("can_create_groups", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("can_delete_messages", sa.Boolean(), server_default=sa.false(), nullable=False),
    )
    op.create_index(
        "ix_class_memberships_class_user", "class_memberships", ["class_id", "user_id"]
    )
    op.create_index("ix_class_memberships_user_id", "class_memberships", ["user_id"])

    op.create_table(
        "groups",
        *_base_columns(),
        _fk("class_id", "classes.id"),
        _fk("owner_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_groups_class_id", "groups", ["class_id"])

    op.create_table(
        "group_memberships",
        *_base_columns(),
        _fk("group_id", "groups.id"),
        _fk("user_id", "users.id"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_memberships_pair"),
    )
    op.create_index("ix_group_memberships_group_id", "group_memberships", ["group_id"])
    op.create_index("ix_group_memberships_user_id", "group_memberships", ["user_id"])

    # Messaging
    op.create_table(
        "threads",
        *_base_columns(),
        sa.Column(
            "type",
            sa.Enum("DIRECT", "GROUP", "CLASS_CHANNEL", name="thread_type"),
            nullable=False,
        ),
        sa.Column("direct_key", sa.String(length=80), nullable=True, unique=True),
        sa.Column(
            "group_id",
            sa.String(length=36),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.Column(
            "class_id",
            sa.String(length=36),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.CheckConstraint("group_id IS NULL OR class_id IS NULL", name="ck_threads_single_owner"),
    )

    op.create_table(
        "thread_participants",
        *_base_columns(),
        _fk("thread_id", "threads.id"),
        _fk("user_id", "users.id"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("thread_id", "user_id", name="uq_thread_participants_pair"),
    )
    op.create_index("ix_thread_participants_thread_id", "thread_participants", ["thread_id"])
    op.create_index("ix_thread_participants_user_id", "thread_participants", ["user_id"])

    op.create_table(
        "messages",
        *_base_columns(),
        _fk("thread_id", "threads.id"),
        _fk("sender_id", "users.id"),
        sa.Column("content", sa.Text(), nullable=False),
        _fk("parent_message_id", "messages.id", nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_messages_thread_created", "messages", ["thread_id", "created_at"])
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_parent_message_id", "messages", ["parent_message_id"])

    op.create_table(
        "message_read_status",
        *_base_columns(),
        _fk("message_id", "messages.id"),
        _fk("user_id", "users.id"),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("message_id", "user_id", name="uq_message_read_status_pair"),
    )
    op.create_index("ix_message_read_status_message_id", "message_read_status", ["message_id"])

    # News
    op.create_table(
        "news_posts",
        *_base_columns(),
        _fk("author_id", "users.id"),
        sa.Column("scope", sa.Enum("SCHOOL", "CLASS", name="news_scope"), nullable=False),
        _fk("school_id", "schools.id", nullable=True),
        _fk("class_id", "classes.id", nullable=True),
        sa.Column(
            "type",
            sa.Enum("ANNOUNCEMENT", "POLL", name="news_post_type"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_news_posts_author_id", "news_posts", ["author_id"])
    op.create_index("ix_news_posts_school_id", "news_posts", ["school_id"])
    op.create_index("ix_news_posts_class_id", "news_posts", ["class_id"])
    op.create_index("ix_news_posts_published_at", "news_posts", ["published_at"])

    op.create_table(
        "poll_options",
        *_base_columns(),
        _fk("news_post_id", "news_posts.id"),
        sa.Column("option_text", sa.String(length=500), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
    )
    op.create_index("ix_poll_options_news_post_id", "poll_options", ["news_post_id"])

    op.create_table(
        "poll_votes",
        *_base_columns(),
        _fk("poll_option_id", "poll_options.id"),
        _fk("news_post_id", "news_posts.id"),
        _fk("user_id", "users.id"),
        sa.UniqueConstraint("news_post_id", "user_id", name="uq_poll_votes_post_user"),
    )
    op.create_index("ix_poll_votes_poll_option_id", "poll_votes", ["poll_option_id"])

    op.create_table(
        "news_likes",
        *_base_columns(),
        _fk("news_post_id", "news_posts.id"),
        _fk("user_id", "users.id"),
        sa.UniqueConstraint("news_post_id", "user_id", name="uq_news_likes_pair"),
    )
    op.create_index("ix_news_likes_news_post_id", "news_likes", ["news_post_id"])


def downgrade() -> None:
    for table in (
        "news_likes",
        "poll_votes",
        "poll_options",
        "news_posts",
        "message_read_status",
        "messages",
        "thread_participants",
        "threads",
        "group_memberships",
        "groups",
        "class_memberships",
        "child_class_assignments",
        "classes",
        "children",
        "school_permissions",
        "school_admins",
        "schools",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(bind, checkfirst=True)
