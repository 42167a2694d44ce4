"""
gatotkota.services.rule_service — Point Rule Resolution & Management
=====================================================================

Looks up the active rule for an ``(event_type, event_condition)`` pair
and provides the admin CRUD over ``point_rules``.

Matching is exact: a condition must equal ``event_condition``; no
condition matches only rules whose ``event_condition IS NULL``.  When
more than one active rule matches, the oldest (lowest id) wins and a
warning is logged so the duplicate can be cleaned up.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from gatotkota.database.engine import get_session
from gatotkota.database.models import PointRule

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({
    "event_type", "event_condition", "points", "description", "is_active",
})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
def find_matching_rules(
    session: Session, event_type: str, event_condition: str | None = None
) -> list[PointRule]:
    """All active rules for the pair, oldest first."""
    stmt = select(PointRule).where(
        PointRule.event_type == event_type,
        PointRule.is_active.is_(True),
    )
    if event_condition:
        stmt = stmt.where(PointRule.event_condition == event_condition)
    else:
        stmt = stmt.where(PointRule.event_condition.is_(None))
    return list(session.scalars(stmt.order_by(PointRule.id)).all())


def resolve_rule(
    session: Session, event_type: str, event_condition: str | None = None
) -> PointRule | None:
    """Return the rule that applies, or None.

    None also covers a matching rule that awards 0 points; both mean
    "nothing to award".
    """
    if not event_type:
        raise ValueError("event_type must be a non-empty string")

    rules = find_matching_rules(session, event_type, event_condition)
    if not rules:
        logger.info(
            "No active rule found for %s with condition: %s",
            event_type, event_condition,
        )
        return None

    if len(rules) > 1:
        logger.warning(
            "%d active rules match %s/%s — using rule %d",
            len(rules), event_type, event_condition, rules[0].id,
        )

    rule = rules[0]
    if rule.points == 0:
        logger.info("Rule %d awards 0 points for %s", rule.id, event_type)
        return None
    return rule


# ---------------------------------------------------------------------------
# Admin CRUD
# ---------------------------------------------------------------------------
def list_rules(engine: Engine) -> list[PointRule]:
    """Every rule, newest first."""
    with get_session(engine) as session:
        return list(session.scalars(
            select(PointRule).order_by(PointRule.created_at.desc(), PointRule.id.desc())
        ).all())


def create_rule(
    engine: Engine,
    *,
    event_type: str,
    points: int,
    description: str,
    event_condition: str | None = None,
    is_active: bool = True,
    created_by: int | None = None,
) -> PointRule:
    """Create a rule.

    Raises
    ------
    ValueError
        If ``event_type`` or ``description`` is empty, or ``points`` is not
        an integer.
    """
    if not event_type or points is None or not description:
        raise ValueError("Missing required fields: event_type, points, description")

    with get_session(engine) as session:
        rule = PointRule(
            event_type=event_type,
            event_condition=event_condition or None,
            points=int(points),
            description=description,
            is_active=is_active,
            created_by=created_by,
        )
        session.add(rule)
        session.flush()

    logger.info("Created point rule: %s = %d points", event_type, rule.points)
    return rule


def update_rule(engine: Engine, rule_id: int, **changes: Any) -> PointRule | None:
    """Apply *changes* to a rule; returns None if it doesn't exist.

    Raises
    ------
    ValueError
        If *changes* names a field that isn't editable.
    """
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update point rule fields: {sorted(unknown)}")

    with get_session(engine) as session:
        rule = session.get(PointRule, rule_id)
        if rule is None:
            return None
        for key, value in changes.items():
            if key == "points":
                value = int(value)
            elif key == "event_condition":
                value = value or None
            setattr(rule, key, value)
        rule.updated_at = datetime.now(UTC)

    logger.info("Updated point rule: %d", rule_id)
    return rule


def delete_rule(engine: Engine, rule_id: int) -> bool:
    """Delete a rule.  Ledger rows keep their history (``rule_id`` → NULL)."""
    with get_session(engine) as session:
        rule = session.get(PointRule, rule_id)
        if rule is None:
            return False
        session.delete(rule)

    logger.info("Deleted point rule: %d", rule_id)
    return True
