"""
Role gate.

Mutating portal actions are available to admins only. A denied action
is a no-op that returns a notice for the UI; it never raises.
"""

from typing import Optional

from pydantic import BaseModel

from portal.audit import AuditLogger
from portal.models.records import UserRole


class ActionResult(BaseModel):
    """Outcome of a user action, with a message suitable for a toast."""

    ok: bool
    notice: str = ""

    @classmethod
    def success(cls, notice: str = "") -> "ActionResult":
        return cls(ok=True, notice=notice)

    @classmethod
    def failure(cls, notice: str) -> "ActionResult":
        return cls(ok=False, notice=notice)


def can_mutate(role: UserRole) -> bool:
    return UserRole(role) == UserRole.ADMIN


def require_admin(
    role: UserRole,
    action: str,
    audit_logger: Optional[AuditLogger] = None,
) -> Optional[ActionResult]:
    """
    None if the role may perform the action, else the denial result.

    Usage:
        denied = require_admin(self.role, "delete", self._audit_logger)
        if denied:
            return denied
    """
    if can_mutate(role):
        return None
    if audit_logger:
        audit_logger.log_permission_denied(action=action, role=UserRole(role).value)
    return ActionResult.failure(f"Only admins can {action}. You are viewing as investor.")
