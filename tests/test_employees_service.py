import pytest

from lms.common.enums import EmployeeStatus, RoleName
from lms.common.errors import NotFound, PermissionDenied, StoreError, ValidationError
from lms.core.config import get_settings
from lms.features.employees.schemas import EmployeeCreate, EmployeeUpdate
from lms.features.employees.service import EmployeeService, document_path, filter_employees

pytestmark = pytest.mark.anyio("asyncio")


def _new_employee(**overrides):
    data = {
        "email": "New.Hire@Example.com",
        "password": "s3cret!",
        "first_name": "Nia",
        "last_name": "Okafor",
        "department": "Platform",
        "role": RoleName.TRAINEE,
    }
    data.update(overrides)
    return EmployeeCreate(**data)


def test_filter_employees_matches_name_code_and_department():
    rows = [
        {"first_name": "Ana", "last_name": "Silva", "employee_code": "E-001", "department": "Sales", "current_status": "Active"},
        {"first_name": "Ben", "last_name": "Moss", "employee_code": "E-002", "department": "Platform", "current_status": "Pre-Joining"},
    ]
    assert [r["first_name"] for r in filter_employees(rows, search="ana s")] == ["Ana"]
    assert [r["first_name"] for r in filter_employees(rows, search="e-002")] == ["Ben"]
    assert [r["first_name"] for r in filter_employees(rows, search="PLAT")] == ["Ben"]
    assert [r["first_name"] for r in filter_employees(rows, status=EmployeeStatus.ACTIVE)] == ["Ana"]
    assert filter_employees(rows, search="  ") == rows


def test_document_path_is_namespaced_by_employee():
    assert document_path("emp-1", "my contract.pdf", now_ms=42) == "emp-1/42-my_contract.pdf"
    assert document_path("emp-1", "", now_ms=1) == "emp-1/1-document"


async def test_create_employee_fills_provisioned_profile(fake_db, admin):
    row = await EmployeeService().create_employee(admin, _new_employee())
    assert row["email"] == "new.hire@example.com"
    assert row["current_status"] == "Pre-Joining"
    assert row["role_id"] == fake_db.role_id("Trainee")
    assert "new.hire@example.com" in fake_db.auth_emails


async def test_create_employee_duplicate_email(fake_db, admin):
    svc = EmployeeService()
    await svc.create_employee(admin, _new_employee())
    with pytest.raises(ValidationError, match="registration_failed"):
        await svc.create_employee(admin, _new_employee())


async def test_create_employee_without_profile_trigger(fake_db, admin):
    fake_db.signup_trigger = False
    with pytest.raises(StoreError, match="profile_not_provisioned"):
        await EmployeeService().create_employee(admin, _new_employee())


async def test_trainee_reads_only_own_record(fake_db, trainee, make_ctx):
    other = make_ctx(RoleName.TRAINEE)
    svc = EmployeeService()
    assert (await svc.get_employee(trainee, trainee.user_id))["id"] == trainee.user_id
    with pytest.raises(PermissionDenied):
        await svc.get_employee(trainee, other.user_id)
    with pytest.raises(PermissionDenied):
        await svc.list_employees(trainee)
    with pytest.raises(PermissionDenied):
        await svc.update_employee(trainee, trainee.user_id, EmployeeUpdate(department="Sales"))


async def test_team_lead_cannot_manage_employees(fake_db, make_ctx, trainee):
    lead = make_ctx(RoleName.TEAM_LEAD)
    with pytest.raises(PermissionDenied):
        await EmployeeService().change_role(lead, trainee.user_id, RoleName.HR)


async def test_list_employees_filters_by_role(fake_db, admin, trainee):
    rows = await EmployeeService().list_employees(admin, role=RoleName.TRAINEE)
    assert [r["id"] for r in rows] == [trainee.user_id]


async def test_change_role_and_missing_employee(fake_db, admin, trainee):
    svc = EmployeeService()
    row = await svc.change_role(admin, trainee.user_id, RoleName.TEAM_LEAD)
    assert row["role_id"] == fake_db.role_id("Team Lead")
    with pytest.raises(NotFound):
        await svc.change_role(admin, "ghost", RoleName.HR)


async def test_assign_team_lead_promotes_a_trainee_lead(fake_db, admin, trainee, make_ctx):
    future_lead = make_ctx(RoleName.TRAINEE)
    svc = EmployeeService()
    row = await svc.assign_team_lead(admin, trainee.user_id, future_lead.user_id)
    assert row["manager_id"] == future_lead.user_id
    assert fake_db.rows("profiles", id=future_lead.user_id)[0]["role_id"] == fake_db.role_id("Team Lead")

    with pytest.raises(ValidationError, match="self_manager"):
        await svc.assign_team_lead(admin, trainee.user_id, trainee.user_id)

    row = await svc.unassign_team_lead(admin, trainee.user_id)
    assert row["manager_id"] is None


async def test_list_trainers_and_trainees(fake_db, admin, trainee, make_ctx):
    lead = make_ctx(RoleName.TEAM_LEAD)
    svc = EmployeeService()
    assert {r["id"] for r in await svc.list_trainers(admin)} == {admin.user_id, lead.user_id}
    assert [r["id"] for r in await svc.list_trainees(lead)] == [trainee.user_id]


async def test_document_lifecycle(fake_db, admin, trainee):
    svc = EmployeeService()
    bucket = fake_db.storage.buckets
    doc = await svc.upload_document(admin, trainee.user_id, "Offer letter", "offer.pdf", b"%PDF", content_type="application/pdf")
    assert doc["file_path"] in bucket[get_settings().documents_bucket]

    assert [d["id"] for d in await svc.list_documents(trainee, trainee.user_id)] == [doc["id"]]
    url, ttl = await svc.document_download_url(trainee, doc["id"])
    assert url.startswith("https://fake.storage/")
    assert ttl == get_settings().signed_url_ttl_seconds

    await svc.delete_document(admin, doc["id"])
    assert bucket[get_settings().documents_bucket] == {}
    assert fake_db.rows("employee_documents") == []


async def test_upload_document_requires_name_and_bytes(fake_db, admin, trainee):
    svc = EmployeeService()
    with pytest.raises(ValidationError, match="document_name_required"):
        await svc.upload_document(admin, trainee.user_id, " ", "a.pdf", b"x")
    with pytest.raises(ValidationError, match="file_required"):
        await svc.upload_document(admin, trainee.user_id, "Doc", "a.pdf", b"")
