"""
gatotkota.services.trending_service — Trending Reports
=======================================================

Fetches the recent-report window and hands it to the pure ranker in
:mod:`gatotkota.engine.trending`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import selectinload

from gatotkota.config import DEFAULT_CONFIG, GatotKotaConfig
from gatotkota.database.engine import get_session
from gatotkota.database.models import Comment, Forum
from gatotkota.engine.trending import as_utc, rank_posts

logger = logging.getLogger(__name__)


@dataclass
class TrendingResult:
    """Ranked posts plus what was looked at to produce them."""

    posts: list[dict] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


def _post_to_dict(forum: Forum, comment_count: int) -> dict:
    author = forum.author
    return {
        "id": forum.id,
        "title": forum.title,
        "description": forum.description,
        "created_at": as_utc(forum.created_at),
        "views_count": forum.views_count or 0,
        "upvotes": forum.upvotes or 0,
        "downvotes": forum.downvotes or 0,
        "comments": comment_count,
        "user": (
            {"id": author.id, "full_name": author.full_name, "username": author.username}
            if author else None
        ),
    }


def fetch_recent_posts(engine: Engine, since: datetime) -> list[dict]:
    """Non-deleted posts created at or after *since*, newest first, with
    their comment counts."""
    comment_counts = (
        select(Comment.forum_id, func.count(Comment.id).label("cnt"))
        .group_by(Comment.forum_id)
        .subquery()
    )
    with get_session(engine) as session:
        rows = session.execute(
            select(Forum, func.coalesce(comment_counts.c.cnt, 0))
            .outerjoin(comment_counts, comment_counts.c.forum_id == Forum.id)
            .where(Forum.created_at >= since, Forum.deleted_at.is_(None))
            .options(selectinload(Forum.author))
            .order_by(Forum.created_at.desc(), Forum.id.desc())
        ).all()
        return [_post_to_dict(forum, int(count)) for forum, count in rows]


def rank_trending(
    engine: Engine,
    limit: int | None = None,
    *,
    now: datetime | None = None,
    cfg: GatotKotaConfig = DEFAULT_CONFIG,
) -> TrendingResult:
    """Top *limit* reports from the last ``window_days`` by trending score.

    An empty window gives an empty result.  Store errors propagate.
    """
    tcfg = cfg.trending
    limit = tcfg.default_limit if limit is None else limit
    now = as_utc(now or datetime.now(UTC))
    posts_since = now - timedelta(days=tcfg.window_days)
    boost_since = now - timedelta(days=tcfg.recent_days)

    posts = fetch_recent_posts(engine, posts_since)
    ranked = rank_posts(posts, limit=limit, now=now, cfg=tcfg)

    for post in ranked:
        post["created_at"] = post["created_at"].isoformat()

    logger.info("Trending: ranked %d posts, returning %d", len(posts), len(ranked))
    return TrendingResult(
        posts=ranked,
        metadata={
            "total_checked": len(posts),
            "returned": len(ranked),
            "date_range": {
                "posts_since": posts_since.isoformat(),
                "recent_boost_since": boost_since.isoformat(),
            },
        },
    )
