import pytest

from lms.common.enums import RoleName
from lms.common.errors import ConflictError, NotFound, PermissionDenied, ValidationError
from lms.features.courses.content import ModuleContent, ResourceLink
from lms.features.courses.schemas import CourseCreate, ModuleCreate
from lms.features.courses.service import CourseService

pytestmark = pytest.mark.anyio("asyncio")


async def _course(ctx, **overrides):
    data = {"course_name": "Secure coding", "completion_rule": "pass_all_assessments"}
    data.update(overrides)
    return await CourseService().create_course(ctx, CourseCreate(**data))


def _result(fake_db, course, template, employee_id, pct):
    return fake_db.seed(
        "course_assessments",
        course_id=course["id"],
        assessment_template_id=template["id"],
        employee_id=employee_id,
        percentage=pct,
        status="Completed",
    )


async def test_trainee_cannot_manage_courses(fake_db, trainee):
    with pytest.raises(PermissionDenied):
        await _course(trainee)


async def test_modules_are_numbered_and_renumbered(fake_db, admin):
    svc = CourseService()
    course = await _course(admin)
    content = ModuleContent(primary_url="https://v.example/1", resources=[ResourceLink(name="Ref", url="https://r.example")])
    first = await svc.add_module(admin, course["id"], ModuleCreate(module_name="Intro", content=content))
    second = await svc.add_module(admin, course["id"], ModuleCreate(module_name="Threats"))
    third = await svc.add_module(admin, course["id"], ModuleCreate(module_name="Wrap-up"))
    assert [m["module_order"] for m in (first, second, third)] == [1, 2, 3]
    assert first["content"] == content

    await svc.delete_module(admin, second["id"])
    modules = await svc.list_modules(admin, course["id"])
    assert [(m["module_name"], m["module_order"]) for m in modules] == [("Intro", 1), ("Wrap-up", 2)]

    reordered = await svc.reorder_modules(admin, course["id"], [third["id"], first["id"]])
    assert [m["module_name"] for m in reordered] == ["Wrap-up", "Intro"]
    with pytest.raises(ValidationError):
        await svc.reorder_modules(admin, course["id"], [first["id"]])


async def test_enroll_and_bulk_assign(fake_db, admin, trainee, make_ctx):
    svc = CourseService()
    course = await _course(admin)
    other = make_ctx(RoleName.TRAINEE)

    row = await svc.enroll(trainee, course["id"])
    assert row["status"] == "enrolled"
    assert row["assigned_by"] is None
    with pytest.raises(ConflictError):
        await svc.enroll(trainee, course["id"])
    with pytest.raises(PermissionDenied):
        await svc.enroll(trainee, course["id"], other.user_id)

    added, skipped = await svc.assign_course(admin, course["id"], [trainee.user_id, other.user_id, other.user_id])
    assert added == [other.user_id]
    assert skipped == [trainee.user_id]
    assert len(await svc.list_enrollments(admin, course["id"])) == 2


async def test_evaluate_completion_transitions_once(fake_db, admin, trainee):
    svc = CourseService()
    course = await _course(admin)
    t1 = fake_db.seed("assessment_templates", course_id=course["id"], title="Quiz 1", passing_score=70)
    t2 = fake_db.seed("assessment_templates", course_id=course["id"], title="Quiz 2", passing_score=70)
    await svc.enroll(trainee, course["id"])

    _result(fake_db, course, t1, trainee.user_id, 90)
    assert await svc.evaluate_completion(course["id"], trainee.user_id) is False
    _result(fake_db, course, t2, trainee.user_id, 50)
    _result(fake_db, course, t2, trainee.user_id, 75)
    assert await svc.evaluate_completion(course["id"], trainee.user_id) is True

    enrollment = fake_db.rows("course_enrollments", employee_id=trainee.user_id)[0]
    assert enrollment["status"] == "completed"
    assert enrollment["completion_date"] is not None
    updates = [c for c in fake_db.calls if c == ("course_enrollments", "update")]
    assert await svc.evaluate_completion(course["id"], trainee.user_id) is True
    assert [c for c in fake_db.calls if c == ("course_enrollments", "update")] == updates


async def test_evaluate_completion_without_enrollment(fake_db, admin, trainee):
    course = await _course(admin)
    t1 = fake_db.seed("assessment_templates", course_id=course["id"], title="Quiz", passing_score=70)
    _result(fake_db, course, t1, trainee.user_id, 100)
    assert await CourseService().evaluate_completion(course["id"], trainee.user_id) is False


async def test_mark_complete(fake_db, admin, trainee):
    svc = CourseService()
    no_quiz = await _course(admin, course_name="Handbook")
    await svc.enroll(trainee, no_quiz["id"])
    row = await svc.mark_complete(trainee, no_quiz["id"])
    assert row["status"] == "completed"

    graded = await _course(admin, course_name="Graded")
    fake_db.seed("assessment_templates", course_id=graded["id"], title="Quiz", passing_score=70)
    await svc.enroll(trainee, graded["id"])
    with pytest.raises(ValidationError, match="completion_requirements_not_met"):
        await svc.mark_complete(trainee, graded["id"])
    with pytest.raises(NotFound):
        await svc.mark_complete(admin, graded["id"])


async def test_course_progress_reports_rule_and_standings(fake_db, admin, trainee):
    svc = CourseService()
    course = await _course(admin, completion_rule="pass_minimum_percentage", minimum_passing_percentage=75)
    t1 = fake_db.seed("assessment_templates", course_id=course["id"], title="Quiz 1", passing_score=70)
    fake_db.seed("assessment_templates", course_id=course["id"], title="Quiz 2", passing_score=70, is_mandatory=False)
    await svc.enroll(trainee, course["id"])
    _result(fake_db, course, t1, trainee.user_id, 80)

    progress = await svc.course_progress(trainee, course["id"])
    assert progress["completion_rule"] == "pass_minimum_percentage"
    assert progress["rule_description"] == "Average 75% across assessments to complete"
    assert progress["templates_total"] == 2
    assert progress["templates_passed"] == 1
    assert progress["is_complete"] is False
    assert [t["title"] for t in progress["templates"]] == ["Quiz 1", "Quiz 2"]
    assert progress["templates"][1]["is_mandatory"] is False
