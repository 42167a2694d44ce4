"""
gatotkota.services.level_service — Level Progression
=====================================================

Keeps ``users.level_id`` in step with ``users.current_points`` and
bootstraps the level ladder.

The ladder lives in ``seeds/levels.yaml``; :func:`ensure_default_levels`
inserts any tier whose name is missing, so it is safe on every startup.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select

from gatotkota.database.engine import get_session
from gatotkota.database.models import Level, User
from gatotkota.database.seed import load_seed
from gatotkota.engine.levels import LevelProgress, compute_progress, resolve_level
from gatotkota.services import notification_service

logger = logging.getLogger(__name__)


def default_ladder() -> list[dict]:
    """The seeded level tiers, lowest first."""
    tiers = load_seed("levels.yaml").get("levels", [])
    return sorted(tiers, key=lambda t: int(t["points"]))


def get_levels(engine: Engine) -> list[Level]:
    """All levels ordered by threshold ascending."""
    with get_session(engine) as session:
        return list(session.scalars(select(Level).order_by(Level.points)).all())


def ensure_default_levels(engine: Engine) -> list[Level]:
    """Insert the default tiers that don't exist yet.

    A tier is skipped when its name or its threshold is already taken, so
    a renamed tier (same points, new name) is left alone.

    Returns the levels created by this call; empty when nothing was missing.
    """
    created: list[Level] = []
    with get_session(engine) as session:
        rows = session.execute(select(Level.name, Level.points)).all()
        taken_names = {name for name, _ in rows}
        taken_points = {points for _, points in rows}
        for tier in default_ladder():
            if tier["name"] in taken_names or int(tier["points"]) in taken_points:
                continue
            level = Level(
                name=tier["name"],
                points=int(tier["points"]),
                description=tier.get("description"),
            )
            session.add(level)
            created.append(level)
        session.flush()

    if created:
        logger.info("Created %d default levels.", len(created))
    return created


def get_default_level(engine: Engine) -> Level:
    """The zero-threshold level, bootstrapping the ladder if it's missing."""
    with get_session(engine) as session:
        level = session.scalar(select(Level).where(Level.points == 0))
    if level is not None:
        return level

    ensure_default_levels(engine)
    with get_session(engine) as session:
        return session.scalars(select(Level).order_by(Level.points).limit(1)).one()


def update_level(engine: Engine, user_id: int, current_points: int) -> Level | None:
    """Move *user_id* to the level matching *current_points*.

    Emits a ``level_up`` notification only when the level actually
    changes; a drop to a lower tier gets demotion copy.  Returns the new
    level, or None when nothing changed (same level, unknown user, or no
    qualifying level).
    """
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            logger.info("Level check skipped: user %d not found", user_id)
            return None

        level = resolve_level(session.scalars(select(Level)).all(), current_points)
        if level is None:
            logger.info("No level found for %d points", current_points)
            return None

        if user.level_id == level.id:
            return None

        previous = session.get(Level, user.level_id) if user.level_id else None
        promoted = previous is None or level.points > previous.points
        user.level_id = level.id

    logger.info(
        "Updated user %d to level: %s (%s)",
        user_id, level.name, "up" if promoted else "down",
    )
    notification_service.send_level_up_notification(
        engine, user_id, level.name, level.points, promoted=promoted
    )
    return level


def get_progress(engine: Engine, points: int) -> LevelProgress:
    """Progress of *points* toward the next level."""
    return compute_progress(get_levels(engine), points)
