"""Role checks for staff-only board actions."""

from __future__ import annotations

from collections.abc import Iterable

_ROLE_HIERARCHY = {
    "staff": 2,
    "member": 1,
}


def role_for(email: str | None, staff_emails: Iterable[str]) -> str:
    """Resolve the role of a caller identity."""
    if not email:
        return "member"
    staff = {e.strip().lower() for e in staff_emails}
    return "staff" if email.strip().lower() in staff else "member"


def check_permission(role: str, required_role: str) -> bool:
    """Check if a role has permission to perform an action requiring a specific role."""
    if role not in _ROLE_HIERARCHY or required_role not in _ROLE_HIERARCHY:
        return False
    return _ROLE_HIERARCHY[role] >= _ROLE_HIERARCHY[required_role]


def can_moderate(role: str) -> bool:
    """Check if a role can change status and pins."""
    return check_permission(role, "staff")
