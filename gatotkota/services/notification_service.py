"""
gatotkota.services.notification_service — Notification Coalescer & Inbox
=========================================================================

Creates inbox notifications in reaction to user actions and serves the
recipient-side operations (list, mark read, unread count, retention).

Rules:
  * Nobody is notified about their own action on their own content.
  * Repeated likes on one report within the coalesce window fold into a
    single row whose ``aggregate_count`` tracks the number of likers.
  * ``send_*`` functions are best-effort side effects: a store failure
    is logged and ``None`` is returned, never raised.  Inbox operations
    and the retention sweep propagate errors to the caller.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gatotkota.config import DEFAULT_CONFIG, GatotKotaConfig
from gatotkota.constants import COMMENT_MESSAGE, REPLY_MESSAGE
from gatotkota.database.engine import get_session
from gatotkota.database.models import (
    Comment,
    Forum,
    Notification,
    NotificationType,
    User,
)
from gatotkota.engine.messages import (
    level_up_copy,
    like_aggregate_copy,
    like_copy,
    mention_copy,
    parse_mentions,
    points_title,
    previous_like_count,
    status_copy,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Core insert
# ---------------------------------------------------------------------------
def _add_notification(
    session: Session,
    *,
    user_id: int,
    type_: NotificationType,
    title: str,
    message: str,
    forum_id: int | None = None,
    now: datetime | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        forum_id=forum_id,
        title=title,
        message=message,
        type=type_,
        aggregate_count=1,
        is_read=False,
        created_at=now or _utcnow(),
    )
    session.add(notification)
    session.flush()
    return notification


def create_notification(
    engine: Engine,
    *,
    user_id: int,
    type_: NotificationType,
    title: str,
    message: str,
    forum_id: int | None = None,
    now: datetime | None = None,
) -> Notification | None:
    """Insert a single unread notification.  Returns None on store failure."""
    try:
        with get_session(engine) as session:
            notification = _add_notification(
                session,
                user_id=user_id,
                type_=type_,
                title=title,
                message=message,
                forum_id=forum_id,
                now=now,
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to create %s notification for user %d", type_.value, user_id
        )
        return None

    logger.info("Notification created: %s for user %d", type_.value, user_id)
    return notification


# ---------------------------------------------------------------------------
# Likes — coalesced
# ---------------------------------------------------------------------------
def send_like_notification(
    engine: Engine,
    forum_id: int,
    liker_id: int,
    liker_name: str,
    *,
    now: datetime | None = None,
    cfg: GatotKotaConfig = DEFAULT_CONFIG,
) -> Notification | None:
    """Tell a report's author that *liker_name* liked it.

    If the author already has a like notification for this report created
    within ``cfg.like_coalesce_minutes``, that row is rewritten to the
    aggregate form, marked unread and moved to *now*.  Otherwise a new
    single-liker row is inserted.
    """
    now = now or _utcnow()
    window_start = now - timedelta(minutes=cfg.like_coalesce_minutes)

    try:
        with get_session(engine) as session:
            forum = session.get(Forum, forum_id)
            if forum is None or forum.user_id == liker_id:
                return None

            existing = session.scalar(
                select(Notification)
                .where(
                    Notification.user_id == forum.user_id,
                    Notification.forum_id == forum_id,
                    Notification.type == NotificationType.LIKE,
                    Notification.created_at >= window_start,
                )
                .order_by(Notification.created_at.desc(), Notification.id.desc())
                .limit(1)
            )

            if existing is not None:
                total = previous_like_count(existing.aggregate_count, existing.message) + 1
                existing.title, existing.message = like_aggregate_copy(liker_name, total)
                existing.aggregate_count = total
                existing.is_read = False
                existing.read_at = None
                existing.created_at = now
                session.flush()
                logger.info(
                    "Coalesced like on forum %d for user %d (%d likers)",
                    forum_id, forum.user_id, total,
                )
                return existing

            title, message = like_copy(liker_name)
            return _add_notification(
                session,
                user_id=forum.user_id,
                type_=NotificationType.LIKE,
                title=title,
                message=message,
                forum_id=forum_id,
                now=now,
            )
    except SQLAlchemyError:
        logger.exception("Error sending like notification for forum %d", forum_id)
        return None


# ---------------------------------------------------------------------------
# Comments, replies, mentions
# ---------------------------------------------------------------------------
def send_comment_notification(
    engine: Engine,
    forum_id: int,
    commenter_id: int,
    commenter_name: str,
    *,
    parent_comment_id: int | None = None,
    now: datetime | None = None,
) -> Notification | None:
    """Notify the report author of a root comment, or the parent comment's
    author of a reply."""
    try:
        with get_session(engine) as session:
            forum = session.get(Forum, forum_id)
            if forum is None:
                return None

            if parent_comment_id is not None:
                parent = session.get(Comment, parent_comment_id)
                if parent is None:
                    return None
                recipient_id = parent.user_id
                message = REPLY_MESSAGE.format(actor=commenter_name)
            else:
                recipient_id = forum.user_id
                message = COMMENT_MESSAGE.format(actor=commenter_name)

            if recipient_id == commenter_id:
                return None

            return _add_notification(
                session,
                user_id=recipient_id,
                type_=NotificationType.FORUM_COMMENT,
                title=commenter_name,
                message=message,
                forum_id=forum_id,
                now=now,
            )
    except SQLAlchemyError:
        logger.exception("Error sending comment notification for forum %d", forum_id)
        return None


def resolve_mentioned_user(session: Session, handle: str) -> User | None:
    """Exact username match first, then a case-insensitive full-name
    substring match (lowest id wins)."""
    user = session.scalar(select(User).where(User.username == handle))
    if user is not None:
        return user

    escaped = handle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return session.scalar(
        select(User)
        .where(User.full_name.ilike(f"%{escaped}%", escape="\\"))
        .order_by(User.id)
        .limit(1)
    )


def send_mention_notifications(
    engine: Engine,
    forum_id: int,
    mentioner_id: int,
    mentioner_name: str,
    content: str,
    handles: list[str] | None = None,
    *,
    now: datetime | None = None,
) -> list[Notification]:
    """Notify every distinct user mentioned in *content*.

    *handles* defaults to :func:`parse_mentions` over *content*.  Handles
    that resolve to the same user, or to the mentioner, are skipped.
    """
    if handles is None:
        handles = parse_mentions(content)
    if not handles:
        return []

    title, message = mention_copy(mentioner_name, content)
    sent: list[Notification] = []
    try:
        with get_session(engine) as session:
            notified: set[int] = set()
            for handle in handles:
                user = resolve_mentioned_user(session, handle)
                if user is None or user.id == mentioner_id or user.id in notified:
                    continue
                notified.add(user.id)
                sent.append(_add_notification(
                    session,
                    user_id=user.id,
                    type_=NotificationType.MENTION,
                    title=title,
                    message=message,
                    forum_id=forum_id,
                    now=now,
                ))
    except SQLAlchemyError:
        logger.exception("Error sending mention notifications for forum %d", forum_id)
        return []

    if sent:
        logger.info("Sent %d mention notifications for forum %d", len(sent), forum_id)
    return sent


# ---------------------------------------------------------------------------
# Status changes, system, points, levels
# ---------------------------------------------------------------------------
def send_status_update_notification(
    engine: Engine,
    forum_id: int,
    new_status: str,
    admin_name: str = "Admin",
    *,
    now: datetime | None = None,
) -> Notification | None:
    """Tell the report author their report moved to *new_status*."""
    try:
        with get_session(engine) as session:
            forum = session.get(Forum, forum_id)
            if forum is None:
                return None
            title, message = status_copy(new_status, admin_name)
            return _add_notification(
                session,
                user_id=forum.user_id,
                type_=NotificationType.STATUS_CHANGE,
                title=title,
                message=message,
                forum_id=forum_id,
                now=now,
            )
    except SQLAlchemyError:
        logger.exception("Error sending status notification for forum %d", forum_id)
        return None


def send_system_notification(
    engine: Engine,
    user_id: int,
    title: str,
    message: str,
    forum_id: int | None = None,
) -> Notification | None:
    return create_notification(
        engine,
        user_id=user_id,
        type_=NotificationType.SYSTEM,
        title=title,
        message=message,
        forum_id=forum_id,
    )


def send_points_notification(
    engine: Engine, user_id: int, points: int, description: str
) -> Notification | None:
    return create_notification(
        engine,
        user_id=user_id,
        type_=NotificationType.POINTS,
        title=points_title(points),
        message=description,
    )


def send_level_up_notification(
    engine: Engine,
    user_id: int,
    level_name: str,
    level_points: int,
    *,
    promoted: bool = True,
) -> Notification | None:
    title, message = level_up_copy(level_name, level_points, promoted)
    return create_notification(
        engine,
        user_id=user_id,
        type_=NotificationType.LEVEL_UP,
        title=title,
        message=message,
    )


# ---------------------------------------------------------------------------
# Inbox operations
# ---------------------------------------------------------------------------
def list_notifications(
    engine: Engine, user_id: int, limit: int = 50
) -> list[Notification]:
    """Newest-first notifications for *user_id*."""
    with get_session(engine) as session:
        return list(session.scalars(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        ).all())


def mark_as_read(
    engine: Engine, notification_id: int, user_id: int, *, now: datetime | None = None
) -> bool:
    """Mark one notification read.  Only the recipient can do this.

    Returns False if no row belongs to *user_id* with that id.
    """
    with get_session(engine) as session:
        result = session.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True, read_at=now or _utcnow())
        )
        return bool(result.rowcount)


def mark_all_as_read(
    engine: Engine, user_id: int, *, now: datetime | None = None
) -> int:
    """Mark every unread notification for *user_id* read; returns the count."""
    with get_session(engine) as session:
        result = session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=now or _utcnow())
        )
        return result.rowcount or 0


def get_unread_count(engine: Engine, user_id: int) -> int:
    with get_session(engine) as session:
        return session.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        ) or 0


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------
def cleanup_old_notifications(
    engine: Engine,
    retention_days: int | None = None,
    *,
    now: datetime | None = None,
    cfg: GatotKotaConfig = DEFAULT_CONFIG,
) -> int:
    """Hard-delete notifications older than the retention horizon.

    Returns the number of rows removed.
    """
    days = retention_days if retention_days is not None else cfg.notification_retention_days
    cutoff = (now or _utcnow()) - timedelta(days=days)

    with get_session(engine) as session:
        result = session.execute(
            delete(Notification).where(Notification.created_at < cutoff)
        )
        deleted = result.rowcount or 0

    logger.info(
        "Retention: deleted %d notifications older than %s (retention_days=%d)",
        deleted, cutoff.isoformat(), days,
    )
    return deleted
