from lms.db.base import Base, discover_feature_models, list_models

EXPECTED_TABLES = {
    "roles",
    "profiles",
    "employee_documents",
    "courses",
    "course_modules",
    "course_enrollments",
    "assessment_templates",
    "assessment_questions",
    "question_options",
    "course_assessments",
    "projects",
    "project_assignments",
    "project_milestone_submissions",
    "project_evaluations",
    "training_sessions",
}


def test_discovery_registers_every_table():
    assert discover_feature_models() == 6
    assert set(Base.metadata.tables) == EXPECTED_TABLES
    assert len(list_models()) == len(EXPECTED_TABLES)


def test_one_evaluation_per_submission():
    discover_feature_models()
    table = Base.metadata.tables["project_evaluations"]
    unique = [c for c in table.constraints if c.name == "uq_project_evaluations_submission"]
    assert [col.name for col in unique[0].columns] == ["submission_id"]


def test_enrollment_is_unique_per_course_and_employee():
    discover_feature_models()
    table = Base.metadata.tables["course_enrollments"]
    names = {c.name for c in table.constraints}
    assert "uq_course_enrollments_course_employee" in names
