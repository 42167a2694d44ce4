"""
gatotkota.database.seed — Default Data Seeder
==============================================

Seeds the level ladder and starter point rules from the YAML fixtures
in ``gatotkota/seeds/``.

Idempotent — levels are inserted only for names that don't exist yet,
and point rules only when the table is empty.  Rules edited or deleted
by admins are never recreated.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from gatotkota.database.models import PointRule

logger = logging.getLogger(__name__)

_SEEDS_DIR = Path(__file__).resolve().parent.parent / "seeds"


def load_seed(filename: str) -> Any:
    """Load a YAML file from the seeds directory."""
    path = _SEEDS_DIR / filename
    if not path.exists():
        logger.warning("Seed file not found: %s", path)
        return {}
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _seed_point_rules(session: Session) -> int:
    """Seed starter rules from seeds/point_rules.yaml if the table is empty."""
    existing = session.scalar(select(PointRule.id).limit(1))
    if existing:
        logger.info("Point rules already seeded — skipping.")
        return 0

    data = load_seed("point_rules.yaml")
    count = 0
    for item in data.get("rules", []):
        session.add(PointRule(
            event_type=item["event_type"],
            event_condition=item.get("event_condition"),
            points=int(item["points"]),
            description=item["description"],
            is_active=item.get("is_active", True),
        ))
        count += 1

    logger.info("Seeded %d point rules.", count)
    return count


def seed_database(engine: Engine) -> None:
    """Make sure the level ladder and starter rules exist."""
    from gatotkota.services.level_service import ensure_default_levels

    ensure_default_levels(engine)

    with Session(engine) as session:
        _seed_point_rules(session)
        session.commit()
