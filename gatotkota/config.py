"""
gatotkota.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the engine's tuning values: the like-coalescing
window, notification retention and the trending formula.  The database
URL is not here; it comes from ``DATABASE_URL``.

Usage::

    from gatotkota.config import load_config

    cfg = load_config()                 # reads ./config.yaml by default
    print(cfg.trending.window_days)     # 7

Every key is optional.  Services take a ``cfg`` argument that defaults
to :data:`DEFAULT_CONFIG`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TrendingConfig:
    """Weights and windows for the trending score.

    ``score = views*view_weight + comments*comment_multiplier*comment_weight
    + upvotes*upvote_weight``, boosted by ``recent_boost`` for posts newer
    than ``recent_days``.
    """

    window_days: int = 7
    recent_days: int = 3
    recent_boost: float = 1.2
    view_weight: float = 0.6
    comment_weight: float = 0.3
    comment_multiplier: int = 3
    upvote_weight: float = 0.1
    default_limit: int = 10


@dataclass(frozen=True, slots=True)
class GatotKotaConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    like_coalesce_minutes: int = 60
    notification_retention_days: int = 30
    point_history_limit: int = 50
    trending: TrendingConfig = field(default_factory=TrendingConfig)


DEFAULT_CONFIG = GatotKotaConfig()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> GatotKotaConfig:
    """Read *path* and return a :class:`GatotKotaConfig` instance.

    Keys missing from the file keep their defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    trending_raw: dict = raw.get("trending") or {}
    base = TrendingConfig()
    trending = TrendingConfig(
        window_days=int(trending_raw.get("window_days", base.window_days)),
        recent_days=int(trending_raw.get("recent_days", base.recent_days)),
        recent_boost=float(trending_raw.get("recent_boost", base.recent_boost)),
        view_weight=float(trending_raw.get("view_weight", base.view_weight)),
        comment_weight=float(trending_raw.get("comment_weight", base.comment_weight)),
        comment_multiplier=int(
            trending_raw.get("comment_multiplier", base.comment_multiplier)
        ),
        upvote_weight=float(trending_raw.get("upvote_weight", base.upvote_weight)),
        default_limit=int(trending_raw.get("default_limit", base.default_limit)),
    )

    return GatotKotaConfig(
        like_coalesce_minutes=int(
            raw.get("like_coalesce_minutes", DEFAULT_CONFIG.like_coalesce_minutes)
        ),
        notification_retention_days=int(
            raw.get(
                "notification_retention_days",
                DEFAULT_CONFIG.notification_retention_days,
            )
        ),
        point_history_limit=int(
            raw.get("point_history_limit", DEFAULT_CONFIG.point_history_limit)
        ),
        trending=trending,
    )
