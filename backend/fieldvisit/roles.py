"""
Role definitions and per-operation role sets.

WHY: Every endpoint names the exact set of roles it admits. Membership is
checked literally by the single gate in decorators.require_roles; there is no
implied hierarchy (an admin is admitted only where ADMIN appears in the set).
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value) -> "Role | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# =============================================================================
# ALLOWED ROLE SETS
# =============================================================================

ALL_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})
STAFF_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
EMPLOYEE_ONLY = frozenset({Role.EMPLOYEE})
ADMIN_ONLY = frozenset({Role.ADMIN})

# Reference lookups and visit capture
VIEW_REFERENCE = ALL_ROLES
CAPTURE_VISIT = ALL_ROLES
VIEW_VISIT = ALL_ROLES
VIEW_REPORT = ALL_ROLES

# Lifecycle transitions
SUBMIT_VISIT = EMPLOYEE_ONLY
APPROVE_VISIT = STAFF_ROLES
SEND_REPORT = STAFF_ROLES

# Reference management
MANAGE_REFERENCE = STAFF_ROLES
DELETE_REFERENCE = ADMIN_ONLY
