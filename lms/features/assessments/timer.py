"""In-process attempt sessions and their countdown.

One ``AttemptSession`` exists per started attempt. Its timer fires once at
the deadline and calls back into the submit path; expiry is a submit, not
an error. The session's state machine is the duplicate-submit guard:

    open -> submitting -> submitted
              |
              +-> open      (the result write failed; answers kept)
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from lms.common.errors import ConflictError, NotFound, ValidationError
from lms.common.utils import current_timestamp

from .scoring import Question

logger = logging.getLogger("assessments.timer")

OPEN = "open"
SUBMITTING = "submitting"
SUBMITTED = "submitted"


class AttemptTimer:
    """Single-shot countdown running ``on_expire`` after ``seconds``."""

    def __init__(self, seconds: float, on_expire: Callable[[], Awaitable[Any]]):
        self.seconds = max(0.0, float(seconds))
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._deadline: Optional[float] = None

    def start(self) -> None:
        if self._task is not None:
            return
        self._deadline = time.monotonic() + self.seconds
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.seconds)
        try:
            await self._on_expire()
        except Exception:
            logger.exception("attempt timer callback failed")

    def remaining(self) -> float:
        if self._deadline is None:
            return self.seconds
        return max(0.0, self._deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        # the expiry callback may be the caller; never cancel ourselves mid-submit
        if task is asyncio.current_task():
            return
        task.cancel()


@dataclass
class AttemptSession:
    attempt_id: str
    employee_id: str
    template: dict[str, Any]
    questions: list[Question]
    started_at: datetime = field(default_factory=current_timestamp)
    answers: dict[str, list[str]] = field(default_factory=dict)
    state: str = OPEN
    result: Optional[dict[str, Any]] = None
    timer: Optional[AttemptTimer] = None

    @property
    def template_id(self) -> str:
        return str(self.template["id"])

    @property
    def course_id(self) -> str:
        return str(self.template["course_id"])

    def seconds_remaining(self) -> float:
        return self.timer.remaining() if self.timer else 0.0

    def save_answers(self, answers: dict[str, list[str]]) -> None:
        if self.state != OPEN:
            raise ConflictError("attempt_not_open")
        if self.timer is not None and self.timer.expired:
            raise ValidationError("attempt_time_expired")
        known = {q.id for q in self.questions}
        unknown = [qid for qid in answers if qid not in known]
        if unknown:
            raise ValidationError(f"unknown_questions: {','.join(sorted(unknown))}")
        self.answers = {qid: [str(a) for a in ids] for qid, ids in answers.items()}

    def begin_submit(self) -> dict[str, list[str]]:
        if self.state == SUBMITTING:
            raise ConflictError("submit_in_progress")
        if self.state == SUBMITTED:
            raise ConflictError("attempt_already_submitted")
        self.state = SUBMITTING
        return dict(self.answers)

    def finish_submit(self, result: dict[str, Any]) -> None:
        self.state = SUBMITTED
        self.result = result
        if self.timer is not None:
            self.timer.cancel()

    def fail_submit(self) -> None:
        if self.state == SUBMITTING:
            self.state = OPEN


class AttemptRegistry:
    """Live attempts held by this process, keyed by attempt id.

    A submitted attempt leaves the live map; only its owner is remembered,
    for the most recent ``keep_finished`` attempts, so a repeat submit is
    still a conflict rather than an unknown attempt.
    """

    def __init__(self, keep_finished: int = 1024) -> None:
        self._sessions: dict[str, AttemptSession] = {}
        self._by_owner: dict[tuple[str, str], str] = {}
        self._finished: OrderedDict[str, str] = OrderedDict()
        self._keep_finished = keep_finished

    def open(self, employee_id: str, template: dict[str, Any], questions: list[Question]) -> AttemptSession:
        session = AttemptSession(
            attempt_id=str(uuid.uuid4()),
            employee_id=employee_id,
            template=template,
            questions=questions,
        )
        self._sessions[session.attempt_id] = session
        self._by_owner[(employee_id, session.template_id)] = session.attempt_id
        return session

    def get(self, attempt_id: str) -> AttemptSession:
        session = self._sessions.get(attempt_id)
        if session is None:
            raise NotFound("attempt_not_found")
        return session

    def finished_owner(self, attempt_id: str) -> Optional[str]:
        return self._finished.get(attempt_id)

    def _drop(self, attempt_id: str) -> Optional[AttemptSession]:
        session = self._sessions.pop(attempt_id, None)
        if session is None:
            return None
        key = (session.employee_id, session.template_id)
        if self._by_owner.get(key) == attempt_id:
            del self._by_owner[key]
        if session.timer is not None:
            session.timer.cancel()
        return session

    def finish(self, attempt_id: str) -> None:
        session = self._drop(attempt_id)
        if session is None:
            return
        self._finished[attempt_id] = session.employee_id
        while len(self._finished) > self._keep_finished:
            self._finished.popitem(last=False)

    def discard(self, attempt_id: str) -> None:
        self._drop(attempt_id)

    def active_for(self, employee_id: str, template_id: str) -> Optional[AttemptSession]:
        attempt_id = self._by_owner.get((employee_id, str(template_id)))
        return self._sessions.get(attempt_id) if attempt_id else None

    def active_count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        for attempt_id in list(self._sessions):
            self.discard(attempt_id)
        self._finished.clear()


attempt_registry = AttemptRegistry()
