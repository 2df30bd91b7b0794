from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from lms.common.deps import get_auth_context, require_capability
from lms.common.errors import LMSError, to_http
from lms.features.auth.permissions import AuthContext, Capability
from lms.features.employees.schemas import SignedUrl

from .schemas import (
    AssignProject,
    AssignResult,
    Assignment,
    AssignmentDetail,
    Evaluation,
    EvaluationIn,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Submission,
)
from .service import project_service

router = APIRouter(prefix="/projects", tags=["projects"])

_assign = require_capability(Capability.ASSIGN)
_evaluate = require_capability(Capability.EVALUATE_PROJECTS)


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


@router.get("/", response_model=list[Project])
async def list_projects(ctx: AuthContext = Depends(_assign)):
    try:
        rows = await project_service.list_projects(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [Project(**r) for r in rows]


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, ctx: AuthContext = Depends(_assign)):
    try:
        return Project(**await project_service.create_project(ctx, body))
    except LMSError as exc:
        raise _err(exc)


@router.get("/assignments/me", response_model=list[Assignment])
async def my_assignments(ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await project_service.list_my_assignments(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [Assignment(**r) for r in rows]


@router.get("/assignments/{assignment_id}", response_model=AssignmentDetail)
async def assignment_detail(assignment_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        detail = await project_service.assignment_detail(ctx, assignment_id)
    except LMSError as exc:
        raise _err(exc)
    return AssignmentDetail(
        assignment=Assignment(**detail["assignment"]),
        submissions=[Submission(**s) for s in detail["submissions"]],
        evaluations=[Evaluation(**e) for e in detail["evaluations"]],
    )


@router.post(
    "/assignments/{assignment_id}/submissions", response_model=Submission, status_code=status.HTTP_201_CREATED
)
async def submit_work(
    assignment_id: str,
    link: Optional[str] = Form(None),
    comments: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    data = await file.read() if file is not None else None
    try:
        row = await project_service.submit_work(
            ctx,
            assignment_id,
            link=link,
            comments=comments,
            filename=file.filename if file is not None else None,
            data=data,
            content_type=file.content_type if file is not None else None,
        )
    except LMSError as exc:
        raise _err(exc)
    return Submission(**row)


@router.get("/submissions/{submission_id}/url", response_model=SignedUrl)
async def submission_url(submission_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        url, ttl = await project_service.submission_download_url(ctx, submission_id)
    except LMSError as exc:
        raise _err(exc)
    return SignedUrl(url=url, expires_in=ttl)


@router.post(
    "/submissions/{submission_id}/evaluation", response_model=Evaluation, status_code=status.HTTP_201_CREATED
)
async def evaluate_submission(submission_id: str, body: EvaluationIn, ctx: AuthContext = Depends(_evaluate)):
    """Record the evaluation; the assignment moves to Evaluated. A second one is a 409."""
    try:
        return Evaluation(**await project_service.evaluate_submission(ctx, submission_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        return Project(**await project_service.get_project(ctx, project_id))
    except LMSError as exc:
        raise _err(exc)


@router.patch("/{project_id}", response_model=Project)
async def update_project(project_id: str, body: ProjectUpdate, ctx: AuthContext = Depends(_assign)):
    try:
        return Project(**await project_service.update_project(ctx, project_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, ctx: AuthContext = Depends(_assign)):
    try:
        await project_service.delete_project(ctx, project_id)
    except LMSError as exc:
        raise _err(exc)


@router.post("/{project_id}/assignments", response_model=AssignResult, status_code=status.HTTP_201_CREATED)
async def assign_project(project_id: str, body: AssignProject, ctx: AuthContext = Depends(_assign)):
    try:
        created, skipped = await project_service.assign_project(ctx, project_id, body.trainee_ids)
    except LMSError as exc:
        raise _err(exc)
    return AssignResult(assigned=[Assignment(**a) for a in created], skipped=skipped)


@router.get("/{project_id}/assignments", response_model=list[Assignment])
async def list_assignments(project_id: str, ctx: AuthContext = Depends(_assign)):
    try:
        rows = await project_service.list_assignments(ctx, project_id)
    except LMSError as exc:
        raise _err(exc)
    return [Assignment(**r) for r in rows]
