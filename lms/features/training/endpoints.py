from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from lms.common.deps import get_auth_context, require_capability
from lms.common.errors import LMSError, to_http
from lms.features.auth.permissions import AuthContext, Capability

from .schemas import AttendeeAssign, SessionCreate, TrainingSession
from .service import training_service

router = APIRouter(prefix="/training-sessions", tags=["training"])

_assign = require_capability(Capability.ASSIGN)


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


def _out(row: dict) -> TrainingSession:
    return TrainingSession(**{**row, "attendees": [str(a) for a in row.get("attendees") or []]})


@router.get("/", response_model=list[TrainingSession])
async def list_sessions(ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await training_service.list_sessions(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [_out(r) for r in rows]


@router.post("/", response_model=TrainingSession, status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreate, ctx: AuthContext = Depends(_assign)):
    try:
        return _out(await training_service.create_session(ctx, body))
    except LMSError as exc:
        raise _err(exc)


@router.get("/{session_id}", response_model=TrainingSession)
async def get_session(session_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        return _out(await training_service.get_session(ctx, session_id))
    except LMSError as exc:
        raise _err(exc)


@router.post("/{session_id}/attendees", response_model=TrainingSession)
async def assign_attendees(session_id: str, body: AttendeeAssign, ctx: AuthContext = Depends(_assign)):
    try:
        return _out(await training_service.assign_attendees(ctx, session_id, body.employee_ids))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, ctx: AuthContext = Depends(_assign)):
    try:
        await training_service.delete_session(ctx, session_id)
    except LMSError as exc:
        raise _err(exc)
