from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from lms.common.deps import get_auth_context, require_capability
from lms.common.errors import LMSError, to_http
from lms.features.auth.permissions import AuthContext, Capability

from .schemas import (
    AnswersIn,
    AttemptResult,
    AttemptStarted,
    AttemptState,
    QuestionIn,
    QuestionOut,
    ResultRow,
    Standing,
    Template,
    TemplateCreate,
    TemplateUpdate,
)
from .service import assessment_service
from .timer import AttemptSession

router = APIRouter(prefix="/assessments", tags=["assessments"])

_manage = require_capability(Capability.MANAGE_COURSES)
_take = require_capability(Capability.TAKE_ASSESSMENTS)


def _err(exc: LMSError) -> HTTPException:
    return to_http(exc)


def _state(session: AttemptSession) -> AttemptState:
    return AttemptState(
        attempt_id=session.attempt_id,
        state=session.state,
        seconds_remaining=session.seconds_remaining(),
        answered=sum(1 for ids in session.answers.values() if ids),
    )


# --- templates ---------------------------------------------------------------
@router.get("/courses/{course_id}", response_model=list[Template])
async def list_templates(course_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await assessment_service.list_templates(ctx, course_id)
    except LMSError as exc:
        raise _err(exc)
    return [Template(**r) for r in rows]


@router.post("/courses/{course_id}", response_model=Template, status_code=status.HTTP_201_CREATED)
async def create_template(course_id: str, body: TemplateCreate, ctx: AuthContext = Depends(_manage)):
    try:
        return Template(**await assessment_service.create_template(ctx, course_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.get("/results", response_model=list[ResultRow])
async def list_results(
    employee_id: Optional[str] = Query(None),
    template_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        rows = await assessment_service.list_results(ctx, employee_id, template_id)
    except LMSError as exc:
        raise _err(exc)
    return [ResultRow(**r) for r in rows]


@router.get("/standing/{course_id}", response_model=list[Standing])
async def standing(course_id: str, employee_id: Optional[str] = Query(None), ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await assessment_service.standing(ctx, course_id, employee_id)
    except LMSError as exc:
        raise _err(exc)
    return [Standing(**r) for r in rows]


@router.patch("/questions/{question_id}", response_model=QuestionOut)
async def update_question(question_id: str, body: QuestionIn, ctx: AuthContext = Depends(_manage)):
    try:
        return QuestionOut(**await assessment_service.update_question(ctx, question_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        await assessment_service.delete_question(ctx, question_id)
    except LMSError as exc:
        raise _err(exc)


# --- attempts ----------------------------------------------------------------
@router.put("/attempts/{attempt_id}/answers", response_model=AttemptState)
async def save_answers(attempt_id: str, body: AnswersIn, ctx: AuthContext = Depends(_take)):
    try:
        session = assessment_service.save_answers(ctx, attempt_id, body.answers)
    except LMSError as exc:
        raise _err(exc)
    return _state(session)


@router.get("/attempts/{attempt_id}", response_model=AttemptState)
async def attempt_state(attempt_id: str, ctx: AuthContext = Depends(_take)):
    try:
        session = assessment_service.attempt_state(ctx, attempt_id)
    except LMSError as exc:
        raise _err(exc)
    return _state(session)


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResult)
async def submit_attempt(
    attempt_id: str,
    body: Optional[AnswersIn] = Body(None),
    ctx: AuthContext = Depends(_take),
):
    """Score and record the attempt. A second submit is rejected with 409."""
    try:
        result = await assessment_service.submit_attempt(ctx, attempt_id, body.answers if body else None)
    except LMSError as exc:
        raise _err(exc)
    return AttemptResult(**result)


@router.delete("/attempts/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_attempt(attempt_id: str, ctx: AuthContext = Depends(_take)):
    try:
        assessment_service.abandon_attempt(ctx, attempt_id)
    except LMSError as exc:
        raise _err(exc)


# --- single template ---------------------------------------------------------
@router.get("/{template_id}", response_model=Template)
async def get_template(template_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        return Template(**await assessment_service.get_template(ctx, template_id))
    except LMSError as exc:
        raise _err(exc)


@router.patch("/{template_id}", response_model=Template)
async def update_template(template_id: str, body: TemplateUpdate, ctx: AuthContext = Depends(_manage)):
    try:
        return Template(**await assessment_service.update_template(ctx, template_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(template_id: str, ctx: AuthContext = Depends(_manage)):
    try:
        await assessment_service.delete_template(ctx, template_id)
    except LMSError as exc:
        raise _err(exc)


@router.get("/{template_id}/questions", response_model=list[QuestionOut])
async def list_questions(template_id: str, ctx: AuthContext = Depends(get_auth_context)):
    try:
        rows = await assessment_service.list_questions(ctx, template_id)
    except LMSError as exc:
        raise _err(exc)
    return [QuestionOut(**r) for r in rows]


@router.post("/{template_id}/questions", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
async def add_question(template_id: str, body: QuestionIn, ctx: AuthContext = Depends(_manage)):
    try:
        return QuestionOut(**await assessment_service.add_question(ctx, template_id, body))
    except LMSError as exc:
        raise _err(exc)


@router.post("/{template_id}/attempts", response_model=AttemptStarted, status_code=status.HTTP_201_CREATED)
async def start_attempt(template_id: str, ctx: AuthContext = Depends(_take)):
    try:
        session, questions = await assessment_service.start_attempt(ctx, template_id)
    except LMSError as exc:
        raise _err(exc)
    limit = session.timer.seconds if session.timer else 0
    return AttemptStarted(
        attempt_id=session.attempt_id,
        template_id=session.template_id,
        course_id=session.course_id,
        title=session.template.get("title") or "",
        time_limit_seconds=int(limit),
        seconds_remaining=session.seconds_remaining(),
        questions=[QuestionOut(**q) for q in questions],
    )
