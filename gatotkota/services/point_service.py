"""
gatotkota.services.point_service — Point Ledger Engine
=======================================================

Awards points for user actions and records admin adjustments.

Every award runs the same named steps, each in its own transaction:

  1. rule          — eligibility gate + rule lookup (automatic awards only)
  2. transaction   — append a PointTransaction to the ledger
  3. points        — atomic ``current_points = current_points + n``
  4. level         — move the user to the matching level
  5. notification  — tell the user what they earned / lost

A store failure in ``transaction`` or ``points`` stops the pipeline and
comes back as ``success=False``; whatever already committed stays
committed and is listed in ``completed_steps``.  Failures in ``level``
or ``notification`` are logged and listed in ``failed_steps`` but the
award itself still succeeds.  Nothing here raises on a store error.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from gatotkota.config import DEFAULT_CONFIG, GatotKotaConfig
from gatotkota.constants import (
    EVENT_MANUAL_ADJUSTMENT,
    MANUAL_DEDUCTED_MESSAGE,
    MANUAL_DESCRIPTION,
    MANUAL_RECEIVED_MESSAGE,
)
from gatotkota.database.engine import get_session
from gatotkota.database.models import PointTransaction, User
from gatotkota.engine.roles import is_point_eligible
from gatotkota.services import level_service, notification_service
from gatotkota.services.rule_service import resolve_rule

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
class AwardStep(enum.StrEnum):
    """Named stages of the award pipeline."""
    RULE = "rule"
    TRANSACTION = "transaction"
    POINTS = "points"
    LEVEL = "level"
    NOTIFICATION = "notification"


@dataclass(frozen=True, slots=True)
class RelatedIds:
    """Content an award refers to (all optional)."""

    forum_id: int | None = None
    comment_id: int | None = None
    reaction_id: int | None = None


@dataclass
class AwardResult:
    """Outcome of :func:`award_points` / :func:`manual_adjustment`.

    ``points == 0`` with ``success`` is the no-op outcome (staff account,
    unknown user, no rule, zero-point rule).
    """

    success: bool
    points: int = 0
    total_points: int | None = None
    transaction_id: int | None = None
    message: str = ""
    error: str | None = None
    completed_steps: list[AwardStep] = field(default_factory=list)
    failed_steps: list[AwardStep] = field(default_factory=list)

    @property
    def partial_commit(self) -> bool:
        """True when the award failed after the ledger row was written."""
        return not self.success and AwardStep.TRANSACTION in self.completed_steps


@dataclass
class HistoryResult:
    success: bool
    history: list[dict] = field(default_factory=list)
    error: str | None = None


@dataclass
class StatisticsResult:
    success: bool
    total_points_distributed: int = 0
    total_transactions: int = 0
    event_breakdown: dict[str, int] = field(default_factory=dict)
    top_users: list[dict] = field(default_factory=list)
    error: str | None = None


def _noop(message: str) -> AwardResult:
    return AwardResult(success=True, points=0, message=message)


def _fail(result: AwardResult, step: AwardStep, exc: Exception) -> AwardResult:
    logger.error("Award pipeline failed at %s step: %s", step.value, exc)
    result.success = False
    result.error = str(exc)
    result.failed_steps.append(step)
    return result


# ---------------------------------------------------------------------------
# Running total
# ---------------------------------------------------------------------------
def increment_points(engine: Engine, user_id: int, delta: int) -> int | None:
    """Atomically add *delta* to ``users.current_points``.

    Returns the new total, or None if the user doesn't exist.  Concurrent
    awards to the same user serialize on the row; none are lost.
    """
    with get_session(engine) as session:
        result = session.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                current_points=func.coalesce(User.current_points, 0) + delta,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return None
        return session.scalar(select(User.current_points).where(User.id == user_id))


# ---------------------------------------------------------------------------
# Shared ledger steps (transaction → points → level → notification)
# ---------------------------------------------------------------------------
def _run_ledger_steps(
    engine: Engine,
    result: AwardResult,
    *,
    user_id: int,
    points: int,
    event_type: str,
    event_condition: str | None,
    related: RelatedIds,
    description: str,
    awarded_by: int | None,
    rule_id: int | None,
    notification_message: str,
) -> AwardResult:
    # Ledger row
    try:
        with get_session(engine) as session:
            transaction = PointTransaction(
                user_id=user_id,
                points=points,
                event_type=event_type,
                event_condition=event_condition,
                related_forum_id=related.forum_id,
                related_comment_id=related.comment_id,
                related_reaction_id=related.reaction_id,
                description=description,
                awarded_by=awarded_by,
                rule_id=rule_id,
                created_at=datetime.now(UTC),
            )
            session.add(transaction)
            session.flush()
            result.transaction_id = transaction.id
    except SQLAlchemyError as exc:
        return _fail(result, AwardStep.TRANSACTION, exc)
    result.completed_steps.append(AwardStep.TRANSACTION)

    # Running total
    try:
        total = increment_points(engine, user_id, points)
    except SQLAlchemyError as exc:
        return _fail(result, AwardStep.POINTS, exc)
    if total is None:
        return _fail(result, AwardStep.POINTS, LookupError(f"User {user_id} not found"))
    result.completed_steps.append(AwardStep.POINTS)
    result.points = points
    result.total_points = total

    # Level — best effort from here on
    try:
        level_service.update_level(engine, user_id, total)
        result.completed_steps.append(AwardStep.LEVEL)
    except SQLAlchemyError:
        logger.exception("Level update failed for user %d", user_id)
        result.failed_steps.append(AwardStep.LEVEL)

    if notification_service.send_points_notification(
        engine, user_id, points, notification_message
    ) is None:
        result.failed_steps.append(AwardStep.NOTIFICATION)
    else:
        result.completed_steps.append(AwardStep.NOTIFICATION)

    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def award_points(
    engine: Engine,
    user_id: int,
    event_type: str,
    event_condition: str | None = None,
    related: RelatedIds | None = None,
    awarded_by: int | None = None,
    description: str | None = None,
) -> AwardResult:
    """Award the rule-configured points for *event_type* to *user_id*.

    Staff accounts, unknown users, missing rules and zero-point rules are
    all no-ops: ``success=True, points=0`` and nothing is written.
    *description* overrides the rule's description on the ledger row; the
    notification always carries the rule's description.

    Raises
    ------
    ValueError
        If *event_type* is empty.
    """
    logger.info("Processing %s for user %d", event_type, user_id)
    related = related or RelatedIds()
    result = AwardResult(success=True)

    try:
        with get_session(engine) as session:
            user = session.get(User, user_id)
            if user is None:
                return _noop("User not found")
            if not is_point_eligible(user.role):
                logger.info("Skipping %s for staff user %d", event_type, user_id)
                return _noop("Staff accounts do not earn points")

            rule = resolve_rule(session, event_type, event_condition)
            if rule is None:
                return _noop("No rule applies")
            rule_id, rule_points, rule_description = rule.id, rule.points, rule.description
    except SQLAlchemyError as exc:
        return _fail(result, AwardStep.RULE, exc)
    result.completed_steps.append(AwardStep.RULE)

    result = _run_ledger_steps(
        engine,
        result,
        user_id=user_id,
        points=rule_points,
        event_type=event_type,
        event_condition=event_condition,
        related=related,
        description=description or rule_description,
        awarded_by=awarded_by,
        rule_id=rule_id,
        notification_message=rule_description,
    )
    if result.success:
        result.message = f"Awarded {rule_points} points for {rule_description}"
        logger.info(
            "Awarded %d points to user %d for %s", rule_points, user_id, event_type
        )
    return result


def manual_adjustment(
    engine: Engine, admin_id: int, user_id: int, points: int, reason: str
) -> AwardResult:
    """Add (or, with negative *points*, deduct) points by hand.

    No rule lookup and no role gate: admins can adjust anyone, staff
    included.  The ledger row has ``rule_id=None`` and
    ``awarded_by=admin_id``.

    Raises
    ------
    ValueError
        If *points* is not an integer.
    """
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValueError(f"points must be an integer, got {points!r}")

    logger.info(
        "Manual point adjustment: %d points for user %d by admin %d",
        points, user_id, admin_id,
    )
    result = AwardResult(success=True)

    try:
        with get_session(engine) as session:
            if session.get(User, user_id) is None:
                return _noop("User not found")
    except SQLAlchemyError as exc:
        return _fail(result, AwardStep.RULE, exc)

    template = MANUAL_RECEIVED_MESSAGE if points > 0 else MANUAL_DEDUCTED_MESSAGE
    result = _run_ledger_steps(
        engine,
        result,
        user_id=user_id,
        points=points,
        event_type=EVENT_MANUAL_ADJUSTMENT,
        event_condition=None,
        related=RelatedIds(),
        description=MANUAL_DESCRIPTION.format(reason=reason),
        awarded_by=admin_id,
        rule_id=None,
        notification_message=template.format(points=abs(points), reason=reason),
    )
    if result.success:
        result.message = f"Manual adjustment: {points} points"
    return result


def _transaction_to_dict(tx: PointTransaction) -> dict:
    return {
        "id": tx.id,
        "user_id": tx.user_id,
        "points": tx.points,
        "event_type": tx.event_type,
        "event_condition": tx.event_condition,
        "related_forum_id": tx.related_forum_id,
        "related_comment_id": tx.related_comment_id,
        "related_reaction_id": tx.related_reaction_id,
        "description": tx.description,
        "awarded_by": tx.awarded_by,
        "rule_id": tx.rule_id,
        "created_at": tx.created_at.isoformat() if tx.created_at else None,
        "awarded_by_user": (
            {"full_name": tx.awarded_by_user.full_name} if tx.awarded_by_user else None
        ),
        "rule": {"description": tx.rule.description} if tx.rule else None,
        "related_forum": {"title": tx.related_forum.title} if tx.related_forum else None,
        "related_comment": (
            {"content": tx.related_comment.content} if tx.related_comment else None
        ),
    }


def get_user_point_history(
    engine: Engine,
    user_id: int,
    limit: int | None = None,
    *,
    cfg: GatotKotaConfig = DEFAULT_CONFIG,
) -> HistoryResult:
    """Newest-first ledger entries for *user_id*, with the awarding admin,
    rule, report and comment attached."""
    limit = limit or cfg.point_history_limit
    try:
        with get_session(engine) as session:
            rows = session.scalars(
                select(PointTransaction)
                .where(PointTransaction.user_id == user_id)
                .options(
                    selectinload(PointTransaction.awarded_by_user),
                    selectinload(PointTransaction.rule),
                    selectinload(PointTransaction.related_forum),
                    selectinload(PointTransaction.related_comment),
                )
                .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
                .limit(limit)
            ).all()
            history = [_transaction_to_dict(tx) for tx in rows]
    except SQLAlchemyError as exc:
        logger.error("Error fetching point history for user %d: %s", user_id, exc)
        return HistoryResult(success=False, error=str(exc))

    return HistoryResult(success=True, history=history)


def get_point_statistics(engine: Engine, top_n: int = 10) -> StatisticsResult:
    """Ledger-wide totals, per-event breakdown and the top earners."""
    try:
        with get_session(engine) as session:
            total_points, total_transactions = session.execute(
                select(
                    func.coalesce(func.sum(PointTransaction.points), 0),
                    func.count(PointTransaction.id),
                )
            ).one()

            breakdown_rows = session.execute(
                select(PointTransaction.event_type, func.sum(PointTransaction.points))
                .group_by(PointTransaction.event_type)
            ).all()

            top_rows = session.execute(
                select(User.id, User.full_name, User.current_points)
                .order_by(User.current_points.desc(), User.id)
                .limit(top_n)
            ).all()
    except SQLAlchemyError as exc:
        logger.error("Error fetching point statistics: %s", exc)
        return StatisticsResult(success=False, error=str(exc))

    return StatisticsResult(
        success=True,
        total_points_distributed=int(total_points),
        total_transactions=int(total_transactions),
        event_breakdown={event: int(pts or 0) for event, pts in breakdown_rows},
        top_users=[
            {"id": uid, "full_name": name, "current_points": pts}
            for uid, name, pts in top_rows
        ],
    )
