import pytest

from lms.common.enums import RoleName
from lms.common.errors import PermissionDenied
from lms.features.auth.permissions import (
    PERMISSIONS,
    TRAINER_ROLES,
    AuthContext,
    Capability,
    capabilities_for,
    require,
)


def test_permission_table():
    assert capabilities_for(RoleName.MANAGEMENT) == capabilities_for(RoleName.HR)
    assert Capability.MANAGE_EMPLOYEES not in PERMISSIONS[RoleName.TEAM_LEAD]
    assert PERMISSIONS[RoleName.TEAM_LEAD] >= {Capability.MANAGE_COURSES, Capability.ASSIGN, Capability.EVALUATE_PROJECTS}
    assert PERMISSIONS[RoleName.TRAINEE] == {Capability.VIEW_OWN, Capability.TAKE_ASSESSMENTS}
    assert TRAINER_ROLES == {RoleName.MANAGEMENT, RoleName.HR, RoleName.TEAM_LEAD}


def test_only_trainees_take_assessments():
    for role in RoleName:
        ctx = AuthContext(user_id="u", role=role)
        assert ctx.can_take_assessments() is (role is RoleName.TRAINEE)


def test_trainee_never_manages_employees_or_evaluates_even_own_record():
    ctx = AuthContext(user_id="t1", role=RoleName.TRAINEE)
    assert not ctx.can_manage_employees()
    assert not ctx.can_evaluate_projects()
    assert not ctx.can_act_on(Capability.EVALUATE_PROJECTS, "t1")
    assert ctx.can_act_on(Capability.MANAGE_EMPLOYEES, "t1")  # own record
    assert not ctx.can_act_on(Capability.MANAGE_EMPLOYEES, "someone-else")


def test_no_role_holds_nothing_and_owns_nothing():
    ctx = AuthContext(user_id="u1", role=None)
    assert ctx.capabilities == frozenset()
    assert not ctx.is_own_record("u1")
    for cap in Capability:
        assert not ctx.can_act_on(cap, "u1")


def test_require_raises_with_capability_name():
    ctx = AuthContext(user_id="t1", role=RoleName.TRAINEE)
    require(ctx, Capability.TAKE_ASSESSMENTS)
    require(ctx, Capability.ASSIGN, "t1")
    with pytest.raises(PermissionDenied, match="missing_capability: assign"):
        require(ctx, Capability.ASSIGN)
    with pytest.raises(PermissionDenied):
        require(ctx, Capability.ASSIGN, "t2")


def test_unrecognised_role_string_parses_to_nothing():
    assert RoleName.try_parse("Admin") is None
    assert RoleName.try_parse("team lead") is None
    assert RoleName.try_parse("Team Lead") is RoleName.TEAM_LEAD
