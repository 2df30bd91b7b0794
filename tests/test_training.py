from datetime import datetime, timedelta, timezone

import pytest

from lms.common.enums import RoleName
from lms.common.errors import NotFound, PermissionDenied, ValidationError
from lms.features.training.schemas import SessionCreate
from lms.features.training.service import TrainingService, merge_attendees

START = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)


def test_merge_attendees_is_an_ordered_union():
    assert merge_attendees(["A", "B"], ["B", "C"]) == ["A", "B", "C"]
    assert merge_attendees(None, ["C", "C", "A"]) == ["C", "A"]
    assert merge_attendees(["A"], []) == ["A"]


def _session(trainer_id, **overrides):
    data = {
        "session_name": "Security basics",
        "trainer_id": trainer_id,
        "start_datetime": START,
        "end_datetime": START + timedelta(hours=2),
        "meeting_platform": "Zoom",
        "meeting_link": "https://zoom.example/j/1",
    }
    data.update(overrides)
    return SessionCreate(**data)


@pytest.mark.anyio("asyncio")
async def test_create_session_requires_a_trainer_role(fake_db, admin, make_ctx, trainee):
    svc = TrainingService()
    lead = make_ctx(RoleName.TEAM_LEAD)

    row = await svc.create_session(admin, _session(lead.user_id))
    assert row["attendees"] == []
    assert row["created_by"] == admin.user_id

    with pytest.raises(ValidationError, match="trainer_role_required"):
        await svc.create_session(admin, _session(trainee.user_id))
    with pytest.raises(ValidationError, match="trainer_role_required"):
        await svc.create_session(admin, _session("no-such-user"))


@pytest.mark.anyio("asyncio")
async def test_create_session_validates_time_window_and_link(fake_db, admin):
    svc = TrainingService()
    with pytest.raises(ValidationError, match="end_must_follow_start"):
        await svc.create_session(admin, _session(admin.user_id, end_datetime=START))
    with pytest.raises(ValidationError, match="meeting_link_required"):
        await svc.create_session(admin, _session(admin.user_id, meeting_link="   "))
    assert fake_db.rows("training_sessions") == []


@pytest.mark.anyio("asyncio")
async def test_trainee_cannot_create_sessions(fake_db, trainee):
    with pytest.raises(PermissionDenied):
        await TrainingService().create_session(trainee, _session(trainee.user_id))


@pytest.mark.anyio("asyncio")
async def test_assign_attendees_merges_and_trainee_sees_own_sessions(fake_db, admin, trainee, make_ctx):
    svc = TrainingService()
    other = make_ctx(RoleName.TRAINEE)
    session = await svc.create_session(admin, _session(admin.user_id))
    hidden = await svc.create_session(admin, _session(admin.user_id, session_name="Leads only"))

    await svc.assign_attendees(admin, session["id"], [other.user_id])
    row = await svc.assign_attendees(admin, session["id"], [other.user_id, trainee.user_id])
    assert row["attendees"] == [other.user_id, trainee.user_id]

    visible = await svc.list_sessions(trainee)
    assert [s["id"] for s in visible] == [session["id"]]
    assert len(await svc.list_sessions(admin)) == 2
    assert (await svc.get_session(trainee, session["id"]))["id"] == session["id"]
    with pytest.raises(NotFound):
        await svc.get_session(trainee, hidden["id"])


@pytest.mark.anyio("asyncio")
async def test_assign_to_missing_session(fake_db, admin):
    with pytest.raises(NotFound):
        await TrainingService().assign_attendees(admin, "missing", ["x"])
