from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from lms.common.deps import get_auth_context, require_capability
from lms.common.enums import DocumentType, EmployeeStatus, RoleName
from lms.common.errors import LMSError, to_http
from lms.features.auth.permissions import AuthContext, Capability

from .schemas import Employee, EmployeeCreate, EmployeeDocument, EmployeeUpdate, RoleChange, SignedUrl, TeamLeadAssign
from .service import employee_service

router = APIRouter(prefix="/employees", tags=["employees"])

_manage = require_capability(Capability.MANAGE_EMPLOYEES)
_assign = require_capability(Capability.ASSIGN)


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


@router.get("/", response_model=list[Employee])
async def list_employees(
    search: Optional[str] = Query(None),
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    role: Optional[RoleName] = Query(None),
    ctx: AuthContext = Depends(_manage),
):
    try:
        rows = await employee_service.list_employees(ctx, search=search, status=status_filter, role=role)
    except LMSError as exc:
        raise _err(exc)
    return [Employee(**r) for r in rows]


@router.post("/", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def create_employee(body: EmployeeCreate, ctx: AuthContext = Depends(_manage)):
    try:
        row = await employee_service.create_employee(ctx, body)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.get("/trainees", response_model=list[Employee])
async def list_trainees(ctx: AuthContext = Depends(_assign)):
    try:
        rows = await employee_service.list_trainees(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [Employee(**r) for r in rows]


@router.get("/trainers", response_model=list[Employee])
async def list_trainers(ctx: AuthContext = Depends(_assign)):
    try:
        rows = await employee_service.list_trainers(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [Employee(**r) for r in rows]


@router.get("/documents/{document_id}/url", response_model=SignedUrl)
async def document_url(document_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        url, ttl = await employee_service.document_download_url(ctx, document_id)
    except LMSError as exc:
        raise _err(exc)
    return SignedUrl(url=url, expires_in=ttl)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        await employee_service.delete_document(ctx, document_id)
    except LMSError as exc:
        raise _err(exc)


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(employee_id: str, ctx: AuthContext = Depends(get_auth_context)):
    """Administrators see anyone; every role may read its own record."""
    try:
        row = await employee_service.get_employee(ctx, employee_id)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.patch("/{employee_id}", response_model=Employee)
async def update_employee(employee_id: str, body: EmployeeUpdate, ctx: AuthContext = Depends(_manage)):
    try:
        row = await employee_service.update_employee(ctx, employee_id, body)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.put("/{employee_id}/role", response_model=Employee)
async def change_role(employee_id: str, body: RoleChange, ctx: AuthContext = Depends(_manage)):
    try:
        row = await employee_service.change_role(ctx, employee_id, body.role)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.put("/{employee_id}/team-lead", response_model=Employee)
async def assign_team_lead(employee_id: str, body: TeamLeadAssign, ctx: AuthContext = Depends(_manage)):
    try:
        row = await employee_service.assign_team_lead(ctx, employee_id, body.lead_id)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.delete("/{employee_id}/team-lead", response_model=Employee)
async def unassign_team_lead(employee_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        row = await employee_service.unassign_team_lead(ctx, employee_id)
    except LMSError as exc:
        raise _err(exc)
    return Employee(**row)


@router.get("/{employee_id}/documents", response_model=list[EmployeeDocument])
async def list_documents(employee_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await employee_service.list_documents(ctx, employee_id)
    except LMSError as exc:
        raise _err(exc)
    return [EmployeeDocument(**r) for r in rows]


@router.post("/{employee_id}/documents", response_model=EmployeeDocument, status_code=status.HTTP_201_CREATED)
async def upload_document(
    employee_id: str,
    document_name: str = Form(...),
    document_type: DocumentType = Form(DocumentType.OTHER),
    file: UploadFile = File(...),
    ctx: AuthContext = Depends(_manage),
):
    data = await file.read()
    try:
        row = await employee_service.upload_document(
            ctx,
            employee_id,
            document_name=document_name,
            filename=file.filename or "document",
            data=data,
            document_type=document_type,
            content_type=file.content_type,
        )
    except LMSError as exc:
        raise _err(exc)
    return EmployeeDocument(**row)
