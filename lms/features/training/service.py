from __future__ import annotations

import logging
from typing import Any, Iterable

from lms.common.errors import NotFound, ValidationError
from lms.features.auth.permissions import TRAINER_ROLES, AuthContext, Capability, require
from lms.features.auth.service import AuthService, auth_service

from .repository import TrainingRepository, training_repository
from .schemas import SessionCreate

logger = logging.getLogger("training.service")


def merge_attendees(existing: Iterable[str] | None, new: Iterable[str]) -> list[str]:
    """Deduplicated union: existing ids first, then new ones in the given order."""
    merged: list[str] = []
    seen: set[str] = set()
    for attendee in list(existing or []) + list(new):
        key = str(attendee)
        if key and key not in seen:
            seen.add(key)
            merged.append(key)
    return merged


class TrainingService:
    def __init__(self, repo: TrainingRepository = training_repository, auth: AuthService = auth_service):
        self.repo = repo
        self.auth = auth

    async def _session(self, session_id: str) -> dict[str, Any]:
        row = await self.repo.get_session(session_id)
        if not row:
            raise NotFound("session_not_found")
        return row

    async def list_sessions(self, ctx: AuthContext) -> list[dict[str, Any]]:
        """Trainers and administrators see every session; others only the ones they attend."""
        require(ctx, Capability.VIEW_OWN)
        if ctx.can(Capability.ASSIGN):
            return await self.repo.list_sessions()
        return await self.repo.list_sessions_for_attendee(ctx.user_id)

    async def get_session(self, ctx: AuthContext, session_id: str) -> dict[str, Any]:
        require(ctx, Capability.VIEW_OWN)
        row = await self._session(session_id)
        if not ctx.can(Capability.ASSIGN) and ctx.user_id not in (row.get("attendees") or []):
            raise NotFound("session_not_found")
        return row

    async def create_session(self, ctx: AuthContext, data: SessionCreate) -> dict[str, Any]:
        require(ctx, Capability.ASSIGN)
        name = data.session_name.strip()
        link = data.meeting_link.strip()
        if not name:
            raise ValidationError("session_name_required")
        if not link:
            raise ValidationError("meeting_link_required")
        if data.end_datetime <= data.start_datetime:
            raise ValidationError("end_must_follow_start")
        trainer_role = await self.auth.role_name_for_user(data.trainer_id)
        if trainer_role not in TRAINER_ROLES:
            raise ValidationError("trainer_role_required")

        record = data.model_dump(mode="json")
        record.update({"session_name": name, "meeting_link": link, "created_by": ctx.user_id, "attendees": []})
        row = await self.repo.insert_session(record)
        logger.info(
            "training.session_created id=%s trainer_id=%s start=%s by=%s",
            row.get("id"),
            data.trainer_id,
            record["start_datetime"],
            ctx.user_id,
        )
        return row

    async def assign_attendees(self, ctx: AuthContext, session_id: str, employee_ids: list[str]) -> dict[str, Any]:
        """Read-merge-write of the attendee list.

        Two concurrent assignments can lose one side's additions; the last
        write wins.
        """
        require(ctx, Capability.ASSIGN)
        current = await self._session(session_id)
        merged = merge_attendees(current.get("attendees"), employee_ids)
        row = await self.repo.set_attendees(session_id, merged)
        if row is None:
            raise NotFound("session_not_found")
        logger.info(
            "training.attendees_assigned id=%s before=%d after=%d",
            session_id,
            len(current.get("attendees") or []),
            len(merged),
        )
        return row

    async def delete_session(self, ctx: AuthContext, session_id: str) -> None:
        require(ctx, Capability.ASSIGN)
        await self._session(session_id)
        await self.repo.delete_session(session_id)


training_service = TrainingService()
