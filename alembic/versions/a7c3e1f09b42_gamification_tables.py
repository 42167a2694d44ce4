"""Gamification and notification tables

Levels, point rules, the points ledger and the notification inbox, plus
the users/forums/comments columns the engine reads.

Revision ID: a7c3e1f09b42
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "a7c3e1f09b42"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("user", "karyawan", "admin", name="user_role")
notification_type = sa.Enum(
    "like", "forum_comment", "mention", "status_change", "system", "level_up", "points",
    name="notification_type",
)


def upgrade() -> None:
    op.create_table(
        "levels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("points", sa.Integer(), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("full_name", sa.String(150), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("current_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "level_id", sa.Integer(),
            sa.ForeignKey("levels.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_current_points", "users", ["current_points"])

    op.create_table(
        "point_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_condition", sa.String(100), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column(
            "created_by", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_point_rules_lookup", "point_rules",
        ["event_type", "event_condition", "is_active"],
    )

    op.create_table(
        "forums",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default="pending"),
        sa.Column("views_count", sa.Integer(), server_default="0"),
        sa.Column("upvotes", sa.Integer(), server_default="0"),
        sa.Column("downvotes", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_forums_created_at", "forums", ["created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "forum_id", sa.Integer(),
            sa.ForeignKey("forums.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "parent_id", sa.Integer(),
            sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_comments_forum", "comments", ["forum_id"])

    op.create_table(
        "point_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_condition", sa.String(100), nullable=True),
        sa.Column(
            "related_forum_id", sa.Integer(),
            sa.ForeignKey("forums.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column(
            "related_comment_id", sa.Integer(),
            sa.ForeignKey("comments.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("related_reaction_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "awarded_by", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column(
            "rule_id", sa.Integer(),
            sa.ForeignKey("point_rules.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_point_transactions_user_time", "point_transactions",
        ["user_id", "created_at"],
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "forum_id", sa.Integer(),
            sa.ForeignKey("forums.id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        # No server default: rows imported from the old inbox keep NULL here
        # and their liker count is read back from the message text.
        sa.Column("aggregate_count", sa.Integer(), nullable=True),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_notifications_user_created", "notifications", ["user_id", "created_at"]
    )
    op.create_index(
        "ix_notifications_coalesce", "notifications", ["user_id", "forum_id", "type"]
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("point_transactions")
    op.drop_table("comments")
    op.drop_table("forums")
    op.drop_table("point_rules")
    op.drop_table("users")
    op.drop_table("levels")
    notification_type.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
