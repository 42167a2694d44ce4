"""
gatotkota.engine.roles — Points Eligibility
============================================

Staff accounts (employees and admins) triage reports; their activity
never earns gamification points.  Manual adjustments skip this check.
"""

from __future__ import annotations

from gatotkota.database.models import Role

__all__ = ["STAFF_ROLES", "is_point_eligible"]

STAFF_ROLES: frozenset[Role] = frozenset({Role.EMPLOYEE, Role.ADMIN})


def is_point_eligible(role: Role | str) -> bool:
    """Return True if an account with *role* may earn automatic points.

    Raises
    ------
    ValueError
        If *role* is a string that is not a known :class:`Role` value.
    """
    return Role(role) not in STAFF_ROLES
