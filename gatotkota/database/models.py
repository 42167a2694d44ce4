"""
gatotkota.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables owned or consumed by the gamification engine.

Tables:
- users              — Reporter/staff accounts (role, running points, level)
- levels             — Ordered level ladder keyed by minimum points
- point_rules        — Admin-configured reward per (event_type, event_condition)
- point_transactions — Append-only points ledger
- notifications      — Per-user inbox rows (coalesced likes carry a count)
- forums             — Incident reports (read-only here, used for ranking)
- comments           — Report comments (read-only here)
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all GatotKota ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Role(enum.StrEnum):
    """Account roles.  Staff roles never accrue gamification points."""
    USER = "user"
    EMPLOYEE = "karyawan"
    ADMIN = "admin"


class NotificationType(enum.StrEnum):
    """Every kind of inbox notification the engine can emit."""
    LIKE = "like"
    FORUM_COMMENT = "forum_comment"
    MENTION = "mention"
    STATUS_CHANGE = "status_change"
    SYSTEM = "system"
    LEVEL_UP = "level_up"
    POINTS = "points"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(150), default=None)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=Role.USER,
        nullable=False,
    )
    current_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("levels.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    level: Mapped[Level | None] = relationship()

    __table_args__ = (
        Index("ix_users_current_points", "current_points"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} pts={self.current_points}>"


# ---------------------------------------------------------------------------
# Levels — ordered by minimum points
# ---------------------------------------------------------------------------
class Level(Base):
    __tablename__ = "levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    points: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    def __repr__(self) -> str:
        return f"<Level id={self.id} name={self.name!r} points={self.points}>"


# ---------------------------------------------------------------------------
# PointRule — reward configuration
# ---------------------------------------------------------------------------
class PointRule(Base):
    """Points granted for an event class.

    ``event_condition = NULL`` matches awards made without a condition;
    it is not a wildcard.
    """
    __tablename__ = "point_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_condition: Mapped[str | None] = mapped_column(String(100), default=None)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_point_rules_lookup", "event_type", "event_condition", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<PointRule id={self.id} {self.event_type}/{self.event_condition} "
            f"pts={self.points} active={self.is_active}>"
        )


# ---------------------------------------------------------------------------
# PointTransaction — append-only ledger
# ---------------------------------------------------------------------------
class PointTransaction(Base):
    """Immutable ledger entry.

    ``awarded_by = NULL`` means system-awarded; ``rule_id = NULL`` means a
    manual adjustment.
    """
    __tablename__ = "point_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_condition: Mapped[str | None] = mapped_column(String(100), default=None)
    related_forum_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("forums.id", ondelete="SET NULL"), default=None
    )
    related_comment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="SET NULL"), default=None
    )
    related_reaction_id: Mapped[int | None] = mapped_column(Integer, default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    awarded_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    rule_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("point_rules.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    awarded_by_user: Mapped[User | None] = relationship(foreign_keys=[awarded_by])
    rule: Mapped[PointRule | None] = relationship()
    related_forum: Mapped[Forum | None] = relationship()
    related_comment: Mapped[Comment | None] = relationship()

    __table_args__ = (
        Index("ix_point_transactions_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<PointTransaction id={self.id} user={self.user_id} "
            f"pts={self.points} type={self.event_type!r}>"
        )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class Notification(Base):
    """A single inbox row.

    ``aggregate_count`` is the number of actors folded into a coalesced
    like notification (1 for everything else).
    """
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    forum_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("forums.id", ondelete="CASCADE"), default=None
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            name="notification_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    aggregate_count: Mapped[int | None] = mapped_column(Integer, default=1)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    forum: Mapped[Forum | None] = relationship()

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_coalesce", "user_id", "forum_id", "type"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification id={self.id} user={self.user_id} "
            f"type={self.type} read={self.is_read}>"
        )


# ---------------------------------------------------------------------------
# Forums & Comments — owned by the CRUD layer, read by the engine
# ---------------------------------------------------------------------------
class Forum(Base):
    __tablename__ = "forums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    views_count: Mapped[int] = mapped_column(Integer, default=0)
    upvotes: Mapped[int] = mapped_column(Integer, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    author: Mapped[User] = relationship()

    __table_args__ = (
        Index("ix_forums_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Forum id={self.id} title={self.title!r}>"


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    forum_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("forums.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), default=None
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_comments_forum", "forum_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} forum={self.forum_id} user={self.user_id}>"
