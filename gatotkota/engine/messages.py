"""
gatotkota.engine.messages — Notification Copy & Mention Parsing
================================================================

Pure text helpers used by the notification service: building the
user-facing title/message for each notification kind, working out how
many likers a coalesced notification already represents, and pulling
``@handle`` mentions out of comment text.
"""

from __future__ import annotations

import logging
import re

from gatotkota.constants import (
    LIKE_AGGREGATE_MESSAGE,
    LIKE_AGGREGATE_TITLE,
    LIKE_SINGLE_MESSAGE,
    LEVEL_DOWN_MESSAGE,
    LEVEL_DOWN_TITLE,
    LEVEL_UP_MESSAGE,
    LEVEL_UP_TITLE,
    MENTION_EXCERPT_LENGTH,
    MENTION_MESSAGE,
    POINTS_DEDUCTED_TITLE,
    POINTS_EARNED_TITLE,
    STATUS_DEFAULT_MESSAGE,
    STATUS_TEMPLATES,
)

logger = logging.getLogger(__name__)

# ``\w`` is unicode-aware, so handles like @budi_santoso or @dévi match.
_MENTION_REGEX = re.compile(r"@(\w+)")
_LEGACY_COUNT_REGEX = re.compile(r"(\d+) lainnya")
_LEGACY_AGGREGATE_REGEX = re.compile(r"\bdan\b.*\blainnya\b")


# ---------------------------------------------------------------------------
# Mentions
# ---------------------------------------------------------------------------
def parse_mentions(content: str, author_handle: str | None = None) -> list[str]:
    """Return the distinct ``@handle`` tokens in *content*, first-seen order.

    Matching is case-sensitive.  The author's own handle is dropped.
    """
    seen: dict[str, None] = {}
    for handle in _MENTION_REGEX.findall(content or ""):
        if handle != author_handle:
            seen.setdefault(handle, None)
    return list(seen)


def mention_copy(mentioner_name: str, content: str) -> tuple[str, str]:
    excerpt = (content or "")[:MENTION_EXCERPT_LENGTH]
    return (
        f"@{mentioner_name}",
        MENTION_MESSAGE.format(actor=mentioner_name, excerpt=excerpt),
    )


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------
def like_copy(actor: str) -> tuple[str, str]:
    """Title/message for a fresh single-liker notification."""
    return actor, LIKE_SINGLE_MESSAGE.format(actor=actor)


def like_aggregate_copy(actor: str, total_likers: int) -> tuple[str, str]:
    """Title/message for a coalesced notification.

    *total_likers* includes *actor*, so three likers read
    "X dan 2 lainnya menyukai laporan Anda".
    """
    return (
        LIKE_AGGREGATE_TITLE.format(actor=actor),
        LIKE_AGGREGATE_MESSAGE.format(actor=actor, others=total_likers - 1),
    )


def previous_like_count(aggregate_count: int | None, message: str) -> int:
    """How many likers an existing like notification already represents.

    Uses the structured ``aggregate_count`` when present.  Rows written
    before that column existed only carry the count inside the message
    text ("X dan N lainnya ..."), so fall back to parsing it.  An
    aggregate message whose number can't be read counts as two earlier
    likers; a single-liker message counts as one.
    """
    if aggregate_count:
        return aggregate_count

    message = message or ""
    match = _LEGACY_COUNT_REGEX.search(message)
    if match:
        return int(match.group(1)) + 1

    if _LEGACY_AGGREGATE_REGEX.search(message):
        logger.debug("Like notification without a readable count: %r", message)
        return 2
    return 1


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------
def status_copy(new_status: str, admin_name: str = "Admin") -> tuple[str, str]:
    """Title/message for a report status change."""
    template = STATUS_TEMPLATES.get(new_status)
    if template is None:
        return admin_name, STATUS_DEFAULT_MESSAGE.format(status=new_status)
    title, message = template
    return title or admin_name, message


# ---------------------------------------------------------------------------
# Points & levels
# ---------------------------------------------------------------------------
def points_title(points: int) -> str:
    if points > 0:
        return POINTS_EARNED_TITLE.format(points=points)
    return POINTS_DEDUCTED_TITLE.format(points=abs(points))


def level_up_copy(name: str, points: int, promoted: bool = True) -> tuple[str, str]:
    """Title/message for a level change; *promoted* False means a drop."""
    if promoted:
        return (
            LEVEL_UP_TITLE.format(name=name),
            LEVEL_UP_MESSAGE.format(name=name, points=points),
        )
    return (
        LEVEL_DOWN_TITLE.format(name=name),
        LEVEL_DOWN_MESSAGE.format(name=name, points=points),
    )
