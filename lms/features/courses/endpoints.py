from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from lms.common.deps import get_auth_context, require_capability
from lms.common.enums import CourseType, DifficultyLevel
from lms.common.errors import LMSError, to_http
from lms.features.auth.permissions import AuthContext, Capability

from .schemas import (
    AssignCourse,
    AssignResult,
    Course,
    CourseCreate,
    CourseProgress,
    CourseUpdate,
    Enrollment,
    Module,
    ModuleCreate,
    ModuleReorder,
    ModuleUpdate,
)
from .service import course_service

router = APIRouter(prefix="/courses", tags=["courses"])

_manage = require_capability(Capability.MANAGE_COURSES)
_assign = require_capability(Capability.ASSIGN)


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


@router.get("/", response_model=list[Course])
async def list_courses(
    course_type: Optional[CourseType] = Query(None),
    difficulty: Optional[DifficultyLevel] = Query(None),
    mandatory: Optional[bool] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        rows = await course_service.list_courses(ctx, course_type=course_type, difficulty=difficulty, mandatory=mandatory)
    except LMSError as exc:
        raise _err(exc)
    return [Course(**r) for r in rows]


@router.post("/", response_model=Course, status_code=status.HTTP_201_CREATED)
async def create_course(body: CourseCreate, ctx: AuthContext = Depends(_manage)):
    try:
        return Course(**await course_service.create_course(ctx, body))
    except LMSError as exc:
        raise _err(exc)


@router.get("/enrollments/me", response_model=list[Enrollment])
async def my_enrollments(ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await course_service.list_my_enrollments(ctx)
    except LMSError as exc:
        raise _err(exc)
    return [Enrollment(**r) for r in rows]


@router.patch("/modules/{module_id}", response_model=Module)
async def update_module(module_id: str, body: ModuleUpdate, ctx: AuthContext = Depends(_manage)):
    try:
        return Module(**await course_service.update_module(ctx, module_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(module_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        await course_service.delete_module(ctx, module_id)
    except LMSError as exc:
        raise _err(exc)


@router.get("/{course_id}", response_model=Course)
async def get_course(course_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        return Course(**await course_service.get_course(ctx, course_id))
    except LMSError as exc:
        raise _err(exc)


@router.patch("/{course_id}", response_model=Course)
async def update_course(course_id: str, body: CourseUpdate, ctx: AuthContext = Depends(_manage)):
    try:
        return Course(**await course_service.update_course(ctx, course_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        await course_service.delete_course(ctx, course_id)
    except LMSError as exc:
        raise _err(exc)


@router.get("/{course_id}/modules", response_model=list[Module])
async def list_modules(course_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await course_service.list_modules(ctx, course_id)
    except LMSError as exc:
        raise _err(exc)
    return [Module(**r) for r in rows]


@router.post("/{course_id}/modules", response_model=Module, status_code=status.HTTP_201_CREATED)
async def add_module(course_id: str, body: ModuleCreate, ctx: AuthContext = Depends(_manage)):
    try:
        return Module(**await course_service.add_module(ctx, course_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.put("/{course_id}/modules/order", response_model=list[Module])
async def reorder_modules(course_id: str, body: ModuleReorder, ctx: AuthContext = Depends(_manage)):
    try:
        rows = await course_service.reorder_modules(ctx, course_id, body.module_ids)
    except LMSError as exc:
        raise _err(exc)
    return [Module(**r) for r in rows]


@router.post("/{course_id}/enroll", response_model=Enrollment, status_code=status.HTTP_201_CREATED)
async def enroll(
    course_id: str,
    employee_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Enroll yourself, or (with assign capability) someone else."""
    try:
        return Enrollment(**await course_service.enroll(ctx, course_id, employee_id))
    except LMSError as exc:
        raise _err(exc)


@router.post("/{course_id}/assign", response_model=AssignResult)
async def assign_course(course_id: str, body: AssignCourse, ctx: AuthContext = Depends(_assign)):
    try:
        enrolled, skipped = await course_service.assign_course(ctx, course_id, body.employee_ids)
    except LMSError as exc:
        raise _err(exc)
    return AssignResult(enrolled=enrolled, skipped=skipped)


@router.get("/{course_id}/enrollments", response_model=list[Enrollment])
async def list_enrollments(course_id: str, ctx: AuthContext = Depends(_assign)):
    try:
        rows = await course_service.list_enrollments(ctx, course_id)
    except LMSError as exc:
        raise _err(exc)
    return [Enrollment(**r) for r in rows]


@router.post("/{course_id}/complete", response_model=Enrollment)
async def mark_complete(
    course_id: str,
    employee_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        return Enrollment(**await course_service.mark_complete(ctx, course_id, employee_id))
    except LMSError as exc:
        raise _err(exc)


@router.get("/{course_id}/progress", response_model=CourseProgress)
async def course_progress(
    course_id: str,
    employee_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        return CourseProgress(**await course_service.course_progress(ctx, course_id, employee_id))
    except LMSError as exc:
        raise _err(exc)
