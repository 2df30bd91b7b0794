"""Role & permission resolution.

The permission table is a flat membership check: no role inherits from
another, and an identity without a recognised role holds no capability
at all. Trainees additionally act on their own records through
``AuthContext.can_act_on``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from lms.common.enums import RoleName
from lms.common.errors import PermissionDenied


class Capability(str, Enum):
    MANAGE_EMPLOYEES = "manage_employees"
    MANAGE_COURSES = "manage_courses"
    ASSIGN = "assign"
    EVALUATE_PROJECTS = "evaluate_projects"
    VIEW_OWN = "view_own"
    TAKE_ASSESSMENTS = "take_assessments"


PERMISSIONS: Mapping[RoleName, frozenset[Capability]] = {
    RoleName.MANAGEMENT: frozenset({
        Capability.MANAGE_EMPLOYEES,
        Capability.MANAGE_COURSES,
        Capability.ASSIGN,
        Capability.EVALUATE_PROJECTS,
        Capability.VIEW_OWN,
    }),
    RoleName.HR: frozenset({
        Capability.MANAGE_EMPLOYEES,
        Capability.MANAGE_COURSES,
        Capability.ASSIGN,
        Capability.EVALUATE_PROJECTS,
        Capability.VIEW_OWN,
    }),
    RoleName.TEAM_LEAD: frozenset({
        Capability.MANAGE_COURSES,
        Capability.ASSIGN,
        Capability.EVALUATE_PROJECTS,
        Capability.VIEW_OWN,
    }),
    RoleName.TRAINEE: frozenset({
        Capability.VIEW_OWN,
        Capability.TAKE_ASSESSMENTS,
    }),
}

TRAINER_ROLES = frozenset({RoleName.MANAGEMENT, RoleName.HR, RoleName.TEAM_LEAD})


def capabilities_for(role: Optional[RoleName]) -> frozenset[Capability]:
    if role is None:
        return frozenset()
    return PERMISSIONS.get(role, frozenset())


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity for one signed-in session.

    Built by ``AuthService.resolve_context`` at sign-in / per request and
    passed explicitly to services; discarded on sign-out.
    """

    user_id: str
    role: Optional[RoleName] = None
    profile: dict[str, Any] = field(default_factory=dict, compare=False)
    access_token: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def has_role(self) -> bool:
        return self.role is not None

    @property
    def capabilities(self) -> frozenset[Capability]:
        return capabilities_for(self.role)

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def can_manage_courses(self) -> bool:
        return self.can(Capability.MANAGE_COURSES)

    def can_manage_employees(self) -> bool:
        return self.can(Capability.MANAGE_EMPLOYEES)

    def can_evaluate_projects(self) -> bool:
        return self.can(Capability.EVALUATE_PROJECTS)

    def can_assign(self) -> bool:
        return self.can(Capability.ASSIGN)

    def can_take_assessments(self) -> bool:
        return self.can(Capability.TAKE_ASSESSMENTS)

    def is_own_record(self, target_id: object) -> bool:
        # fail closed: the no-role state owns nothing
        if not self.has_role or target_id is None:
            return False
        return str(target_id) == self.user_id

    def can_act_on(self, capability: Capability, target_id: object) -> bool:
        """Capability check with the self-scope override for own records.

        Evaluation is never self-scoped: nobody grades their own work.
        """
        if capability in _NEVER_SELF_SCOPED:
            return self.can(capability)
        return self.can(capability) or self.is_own_record(target_id)


_NEVER_SELF_SCOPED = frozenset({Capability.EVALUATE_PROJECTS})


def require(ctx: AuthContext, capability: Capability, target_id: object = None) -> None:
    """Raise ``PermissionDenied`` unless ``ctx`` holds ``capability``.

    With ``target_id`` the self-scope override applies.
    """
    allowed = ctx.can_act_on(capability, target_id) if target_id is not None else ctx.can(capability)
    if not allowed:
        raise PermissionDenied(f"missing_capability: {capability.value}")


__all__ = ["Capability", "PERMISSIONS", "TRAINER_ROLES", "AuthContext", "capabilities_for", "require"]
