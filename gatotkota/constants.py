"""
gatotkota.constants — Shared Constants & Helpers
=================================================

Event names, notification copy and the rounding helper shared by the
engine and the services.  Import from here instead of repeating string
literals in callers.
"""

from __future__ import annotations

import math

# ---------------------------------------------------------------------------
# Event types the surrounding controllers award points for
# ---------------------------------------------------------------------------
EVENT_POST_CREATED = "post_created"
EVENT_COMMENT_CREATED = "comment_created"
EVENT_VOTE_CAST = "vote_cast"
EVENT_MANUAL_ADJUSTMENT = "manual_adjustment"


# ---------------------------------------------------------------------------
# Notification copy (Indonesian, user-facing)
# ---------------------------------------------------------------------------
LIKE_SINGLE_MESSAGE = "{actor} menyukai laporan Anda"
LIKE_AGGREGATE_TITLE = "{actor} dan lainnya"
LIKE_AGGREGATE_MESSAGE = "{actor} dan {others} lainnya menyukai laporan Anda"

COMMENT_MESSAGE = "{actor} mengomentari laporan Anda"
REPLY_MESSAGE = "{actor} membalas komentar Anda"
MENTION_MESSAGE = '@{actor} menyebut Anda dalam komentar: "{excerpt}..."'
MENTION_EXCERPT_LENGTH = 50

SYSTEM_SENDER = "Sistem GatotKota"

# status → (title, message).  ``None`` title means "use the admin's name".
STATUS_TEMPLATES: dict[str, tuple[str | None, str]] = {
    "in_progress": (
        SYSTEM_SENDER,
        "Laporan Anda telah diverifikasi oleh admin dan sedang dalam proses penanganan.",
    ),
    "resolved": (
        "Dinas Pekerjaan Umum",
        "Laporan Anda telah selesai ditangani.",
    ),
    "closed": (
        "Dinas Pekerjaan Umum",
        'Laporan Anda berhasil menjadi "Selesai".',
    ),
    "rejected": (
        SYSTEM_SENDER,
        "Laporan Anda telah ditinjau dan tidak memenuhi kriteria untuk ditindaklanjuti.",
    ),
}
STATUS_DEFAULT_MESSAGE = 'Status laporan Anda telah diperbarui menjadi "{status}".'


# ---------------------------------------------------------------------------
# Points / level copy
# ---------------------------------------------------------------------------
POINTS_EARNED_TITLE = "You earned {points} points! \U0001f389"       # 🎉
POINTS_DEDUCTED_TITLE = "Points deducted: {points} \U0001f4c9"       # 📉
MANUAL_RECEIVED_MESSAGE = "You received {points} points: {reason}"
MANUAL_DEDUCTED_MESSAGE = "{points} points were deducted: {reason}"
MANUAL_DESCRIPTION = "Manual adjustment: {reason}"

LEVEL_UP_TITLE = "Level up! {name}"
LEVEL_UP_MESSAGE = "Selamat! Anda mencapai {name} ({points} poin)."
LEVEL_DOWN_TITLE = "Level turun: {name}"
LEVEL_DOWN_MESSAGE = "Level Anda turun ke {name} ({points} poin)."


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------
def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (78.5 → 79, -2.5 → -2).

    Unlike :func:`round`, which rounds halves to even.
    """
    return math.floor(value + 0.5)
