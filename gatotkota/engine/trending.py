"""
gatotkota.engine.trending — Trending Score & Ranking
=====================================================

Pure scoring over already-fetched posts.  No DB I/O here; the
trending service does the fetch.

Pipeline::

    post → base score (views, comments, upvotes) → recency boost → round → sort → top N
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from gatotkota.config import TrendingConfig
from gatotkota.constants import round_half_up

__all__ = ["as_utc", "base_score", "rank_posts", "score_post"]


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def base_score(views: int, comments: int, upvotes: int, cfg: TrendingConfig) -> float:
    """Weighted popularity before the recency boost."""
    return (
        views * cfg.view_weight
        + (comments * cfg.comment_multiplier) * cfg.comment_weight
        + upvotes * cfg.upvote_weight
    )


def score_post(
    *,
    views: int,
    comments: int,
    upvotes: int,
    created_at: datetime,
    now: datetime,
    cfg: TrendingConfig,
) -> tuple[int, bool]:
    """Return ``(trending_score, is_recent)`` for a single post.

    Posts created at or after ``now - recent_days`` get the boost.
    """
    score = base_score(views or 0, comments or 0, upvotes or 0, cfg)
    boost_since = as_utc(now) - timedelta(days=cfg.recent_days)
    is_recent = as_utc(created_at) >= boost_since
    if is_recent:
        score *= cfg.recent_boost
    return round_half_up(score), is_recent


def rank_posts(
    posts: Iterable[dict],
    *,
    limit: int,
    now: datetime,
    cfg: TrendingConfig,
) -> list[dict]:
    """Annotate each post dict with ``trending_score``/``is_recent`` and
    return the top *limit* by score, highest first.

    Each dict needs ``views_count``, ``comments``, ``upvotes`` and
    ``created_at``.  Equal scores keep their input order.
    """
    scored = []
    for post in posts:
        score, is_recent = score_post(
            views=post.get("views_count") or 0,
            comments=post.get("comments") or 0,
            upvotes=post.get("upvotes") or 0,
            created_at=post["created_at"],
            now=now,
            cfg=cfg,
        )
        scored.append({**post, "trending_score": score, "is_recent": is_recent})

    scored.sort(key=lambda p: p["trending_score"], reverse=True)
    return scored[: max(limit, 0)]
