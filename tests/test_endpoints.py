import httpx
import pytest
from fastapi.testclient import TestClient

from lms.common.enums import RoleName
from lms.features.auth import gotrue
import lms.main
from lms.main import app


def _headers(fake_db, ctx):
    fake_db.auth.tokens[ctx.access_token] = ctx.user_id
    return {"Authorization": f"Bearer {ctx.access_token}"}


@pytest.fixture
def client(fake_db):
    with TestClient(app) as c:
        yield c


def test_healthz_reports_counts(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["components"]["supabase"] == "configured"
    assert body["counts"]["open_attempts"] == 0
    assert body["counts"]["models"] > 0


def test_healthz_does_not_rediscover_models(client, monkeypatch):
    def _fail():
        raise AssertionError("model discovery runs once at import")

    monkeypatch.setattr(lms.main, "discover_feature_models", _fail)
    monkeypatch.setattr("lms.db.base.discover_feature_models", _fail)
    assert client.get("/healthz").status_code == 200


def test_request_id_is_echoed(client):
    r = client.get("/", headers={"X-Request-Id": "req-123"})
    assert r.headers["X-Request-Id"] == "req-123"
    assert client.get("/").headers["X-Request-Id"]


def test_missing_and_invalid_tokens_are_rejected(client):
    assert client.get("/auth/me").status_code in (401, 403)
    r = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_me_reports_role_and_capabilities(client, fake_db, trainee):
    r = client.get("/auth/me", headers=_headers(fake_db, trainee))
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "Trainee"
    assert body["pending_role"] is False
    assert body["capabilities"] == ["take_assessments", "view_own"]


def test_no_role_user_is_pending_and_forbidden(client, fake_db, make_ctx):
    pending = make_ctx(None)
    headers = _headers(fake_db, pending)
    me = client.get("/auth/me", headers=headers).json()
    assert me["pending_role"] is True
    assert me["capabilities"] == []
    assert client.get("/auth/roles", headers=headers).status_code == 403
    assert client.get("/courses/", headers=headers).status_code == 403


def test_trainee_cannot_manage_employees(client, fake_db, trainee):
    r = client.post(
        "/employees/",
        json={"email": "x@example.com", "password": "secret1", "first_name": "X", "last_name": "Y"},
        headers=_headers(fake_db, trainee),
    )
    assert r.status_code == 403
    assert r.json()["detail"]["error_code"] == "E_FORBIDDEN"


def test_trainee_reads_own_profile_only(client, fake_db, trainee, admin):
    headers = _headers(fake_db, trainee)
    assert client.get(f"/employees/{trainee.user_id}", headers=headers).json()["role"] == "Trainee"
    assert client.get(f"/employees/{admin.user_id}", headers=headers).status_code == 403


def test_login_returns_tokens_and_session(client, fake_db, monkeypatch, admin):
    real_client = httpx.AsyncClient

    def handler(request):
        return httpx.Response(200, json={"access_token": "fresh", "expires_in": 3600, "user": {"id": admin.user_id}})

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(gotrue.httpx, "AsyncClient", factory)
    r = client.post("/auth/login", json={"email": "hana@example.com", "password": "pw"})
    assert r.status_code == 200
    body = r.json()
    assert body["access_token"] == "fresh"
    assert body["session"]["role"] == "HR"
    assert "manage_employees" in body["session"]["capabilities"]


def test_assessment_attempt_flow(client, fake_db, admin, trainee):
    a = _headers(fake_db, admin)
    t = _headers(fake_db, trainee)

    course = client.post("/courses/", json={"course_name": "Onboarding 101"}, headers=a).json()
    template = client.post(f"/assessments/courses/{course['id']}", json={"title": "Policies"}, headers=a)
    assert template.status_code == 201
    template_id = template.json()["id"]
    question = client.post(
        f"/assessments/{template_id}/questions",
        json={
            "question_text": "Badge must be worn on site?",
            "question_type": "true_false",
            "options": [{"option_text": "True", "is_correct": True}, {"option_text": "False"}],
        },
        headers=a,
    ).json()
    correct = [o["id"] for o in question["options"] if o["is_correct"]]

    assert client.post(f"/courses/{course['id']}/enroll", headers=t).status_code == 201
    assert client.post(f"/assessments/{template_id}/attempts", headers=a).status_code == 403

    started = client.post(f"/assessments/{template_id}/attempts", headers=t)
    assert started.status_code == 201
    attempt = started.json()
    assert attempt["time_limit_seconds"] == 3600
    assert all(o["is_correct"] is None for q in attempt["questions"] for o in q["options"])

    state = client.put(
        f"/assessments/attempts/{attempt['attempt_id']}/answers", json={"answers": {question["id"]: correct}}, headers=t
    ).json()
    assert state["answered"] == 1
    assert client.get("/healthz").json()["counts"]["open_attempts"] == 1

    result = client.post(f"/assessments/attempts/{attempt['attempt_id']}/submit", headers=t)
    assert result.status_code == 200
    assert result.json()["percentage"] == 100.0
    assert result.json()["course_completed"] is True

    again = client.post(f"/assessments/attempts/{attempt['attempt_id']}/submit", headers=t)
    assert again.status_code == 409

    progress = client.get(f"/courses/{course['id']}/progress", headers=t).json()
    assert progress["status"] == "completed"
    assert progress["is_complete"] is True


def test_project_submission_and_evaluation(client, fake_db, admin, trainee, make_ctx):
    a = _headers(fake_db, admin)
    t = _headers(fake_db, trainee)
    lead = make_ctx(RoleName.TEAM_LEAD)

    project = client.post("/projects/", json={"project_name": "Ledger service"}, headers=a).json()
    assigned = client.post(f"/projects/{project['id']}/assignments", json={"trainee_ids": [trainee.user_id]}, headers=a).json()
    assignment_id = assigned["assigned"][0]["id"]

    submitted = client.post(
        f"/projects/assignments/{assignment_id}/submissions",
        data={"comments": "first cut"},
        files={"file": ("ledger.zip", b"PK\x03\x04", "application/zip")},
        headers=t,
    )
    assert submitted.status_code == 201
    submission = submitted.json()
    assert submission["file_url"].endswith(".zip")

    url = client.get(f"/projects/submissions/{submission['id']}/url", headers=t).json()
    assert url["url"].startswith("https://fake.storage/")

    scores = {
        "technical_score": 4,
        "quality_score": 5,
        "timeline_score": 3,
        "communication_score": 4,
        "innovation_score": 4,
        "strengths": "Solid domain model",
        "areas_for_improvement": "Error handling",
    }
    assert client.post(f"/projects/submissions/{submission['id']}/evaluation", json=scores, headers=t).status_code == 403
    evaluated = client.post(f"/projects/submissions/{submission['id']}/evaluation", json=scores, headers=_headers(fake_db, lead))
    assert evaluated.status_code == 201
    assert evaluated.json()["overall_score"] == 4.0
    dup = client.post(f"/projects/submissions/{submission['id']}/evaluation", json=scores, headers=a)
    assert dup.status_code == 409

    detail = client.get(f"/projects/assignments/{assignment_id}", headers=t).json()
    assert detail["assignment"]["status"] == "Evaluated"
    assert len(detail["evaluations"]) == 1


def test_submission_without_link_or_file_is_rejected(client, fake_db, admin, trainee):
    a = _headers(fake_db, admin)
    project = client.post("/projects/", json={"project_name": "Empty"}, headers=a).json()
    assigned = client.post(f"/projects/{project['id']}/assignments", json={"trainee_ids": [trainee.user_id]}, headers=a).json()
    r = client.post(
        f"/projects/assignments/{assigned['assigned'][0]['id']}/submissions",
        data={"comments": "nothing attached"},
        headers=_headers(fake_db, trainee),
    )
    assert r.status_code == 400
    assert r.json()["detail"]["error_code"] == "E_INVALID_INPUT"


def test_training_session_endpoints(client, fake_db, admin, trainee):
    a = _headers(fake_db, admin)
    body = {
        "session_name": "Orientation",
        "session_type": "Orientation",
        "trainer_id": admin.user_id,
        "start_datetime": "2026-06-01T09:00:00+00:00",
        "end_datetime": "2026-06-01T10:00:00+00:00",
        "meeting_platform": "Google Meet",
        "meeting_link": "https://meet.example/abc",
    }
    created = client.post("/training-sessions/", json=body, headers=a)
    assert created.status_code == 201
    session_id = created.json()["id"]

    updated = client.post(f"/training-sessions/{session_id}/attendees", json={"employee_ids": [trainee.user_id]}, headers=a)
    assert updated.json()["attendees"] == [trainee.user_id]
    listed = client.get("/training-sessions/", headers=_headers(fake_db, trainee)).json()
    assert [s["id"] for s in listed] == [session_id]

    bad = dict(body, trainer_id=trainee.user_id)
    assert client.post("/training-sessions/", json=bad, headers=a).status_code == 400
