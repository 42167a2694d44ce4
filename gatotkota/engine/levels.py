"""
gatotkota.engine.levels — Level Resolution & Progress
======================================================

Pure functions over an iterable of levels (anything with ``points``).
A user's level is the one with the greatest threshold ≤ their points;
thresholds are inclusive, so 100 points on a 100-point tier is that tier.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from gatotkota.constants import round_half_up

__all__ = [
    "LevelProgress",
    "compute_progress",
    "next_level",
    "resolve_level",
]


class _HasPoints(Protocol):
    points: int


L = TypeVar("L", bound=_HasPoints)


@dataclass
class LevelProgress:
    """Where a points total sits on the ladder."""

    current: _HasPoints | None
    next: _HasPoints | None
    progress_percent: int
    points_to_next: int


def resolve_level(levels: Iterable[L], points: int) -> L | None:
    """Return the level with the greatest threshold ≤ *points*, or None."""
    best: L | None = None
    for level in levels:
        if level.points <= points and (best is None or level.points > best.points):
            best = level
    return best


def next_level(levels: Iterable[L], points: int) -> L | None:
    """Return the level with the smallest threshold > *points*, or None."""
    best: L | None = None
    for level in levels:
        if level.points > points and (best is None or level.points < best.points):
            best = level
    return best


def compute_progress(levels: Iterable[_HasPoints], points: int) -> LevelProgress:
    """Project *points* onto the ladder.

    * No current level (points below every threshold): 0 % toward the
      lowest level, ``points_to_next`` is that level's threshold.
    * No next level (top tier): 100 %, nothing left to earn.
    """
    ladder = list(levels)
    current = resolve_level(ladder, points)
    upcoming = next_level(ladder, points)

    if current is None:
        return LevelProgress(
            current=None,
            next=upcoming,
            progress_percent=0,
            points_to_next=upcoming.points if upcoming else 0,
        )

    if upcoming is None:
        return LevelProgress(
            current=current,
            next=None,
            progress_percent=100,
            points_to_next=0,
        )

    span = upcoming.points - current.points
    percent = round_half_up(100 * (points - current.points) / span)
    return LevelProgress(
        current=current,
        next=upcoming,
        progress_percent=percent,
        points_to_next=upcoming.points - points,
    )
