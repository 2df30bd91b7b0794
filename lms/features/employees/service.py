from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Optional

from lms.common.enums import DocumentType, EmployeeStatus, RoleName
from lms.common.errors import NotFound, StoreError, ValidationError
from lms.core.config import get_settings
from lms.db import storage
from lms.db.supabase import get_supabase_admin
from lms.features.auth.permissions import TRAINER_ROLES, AuthContext, Capability, require
from lms.features.auth.repository import ProfileRepository, profile_repository

from .repository import EmployeeRepository, employee_repository
from .schemas import EmployeeCreate, EmployeeUpdate

logger = logging.getLogger("employees.service")


def _role_of(profile: dict[str, Any]) -> Optional[RoleName]:
    role = profile.get("role")
    if isinstance(role, list):
        role = role[0] if role else None
    if isinstance(role, dict):
        return RoleName.try_parse(role.get("role_name"))
    return None


def filter_employees(
    employees: list[dict[str, Any]],
    search: Optional[str] = None,
    status: Optional[EmployeeStatus] = None,
    role: Optional[RoleName] = None,
) -> list[dict[str, Any]]:
    """Case-insensitive substring search over name, employee code and department."""
    needle = (search or "").strip().lower()
    out = []
    for emp in employees:
        if needle:
            name = f"{emp.get('first_name') or ''} {emp.get('last_name') or ''}".lower()
            code = (emp.get("employee_code") or "").lower()
            dept = (emp.get("department") or "").lower()
            if needle not in name and needle not in code and needle not in dept:
                continue
        if status is not None and emp.get("current_status") != status.value:
            continue
        if role is not None and _role_of(emp) is not role:
            continue
        out.append(emp)
    return out


def document_path(employee_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    base = os.path.basename(filename or "").strip().replace(" ", "_") or "document"
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{employee_id}/{ts}-{base}"


class EmployeeService:
    def __init__(
        self,
        repo: EmployeeRepository = employee_repository,
        profiles: ProfileRepository = profile_repository,
    ):
        self.repo = repo
        self.profiles = profiles

    async def _role_id(self, role: RoleName) -> str:
        row = await self.profiles.get_role_by_name(role.value)
        if not row:
            raise NotFound(f"role_not_found: {role.value}")
        return str(row["id"])

    async def list_employees(
        self,
        ctx: AuthContext,
        search: Optional[str] = None,
        status: Optional[EmployeeStatus] = None,
        role: Optional[RoleName] = None,
    ) -> list[dict[str, Any]]:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        rows = await self.repo.list_profiles()
        return filter_employees(rows, search=search, status=status, role=role)

    async def get_employee(self, ctx: AuthContext, employee_id: str) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_EMPLOYEES, employee_id)
        row = await self.repo.get_profile(employee_id)
        if not row:
            raise NotFound("employee_not_found")
        return row

    async def create_employee(self, ctx: AuthContext, data: EmployeeCreate) -> dict[str, Any]:
        """Create the auth user, then fill the profile the sign-up trigger created."""
        require(ctx, Capability.MANAGE_EMPLOYEES)
        role_id = await self._role_id(data.role) if data.role else None

        admin = await get_supabase_admin()
        try:
            created = await admin.auth.admin.create_user(
                {
                    "email": str(data.email).lower(),
                    "password": data.password,
                    "email_confirm": True,
                    "user_metadata": {"first_name": data.first_name, "last_name": data.last_name},
                }
            )
        except Exception as exc:
            logger.error("employees.create auth failure email=%s: %s", data.email, exc)
            raise ValidationError(f"registration_failed: {exc}") from exc
        user = getattr(created, "user", None)
        if user is None or not getattr(user, "id", None):
            raise StoreError("registration_failed: auth user id missing")
        user_id = str(user.id)

        fields = {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "email": str(data.email).lower(),
            "employee_code": data.employee_code or None,
            "department": data.department or None,
            "designation": data.designation or None,
            "phone": data.phone or None,
            "role_id": role_id,
            "current_status": EmployeeStatus.PRE_JOINING.value,
        }
        row = None
        for delay in get_settings().profile_fetch_delays:
            if delay:
                await asyncio.sleep(delay)
            row = await self.repo.update_profile(user_id, fields)
            if row is not None:
                break
        if row is None:
            raise StoreError(f"profile_not_provisioned: {user_id}")
        logger.info("employees.created id=%s by=%s role=%s", user_id, ctx.user_id, data.role.value if data.role else None)
        return row

    async def update_employee(self, ctx: AuthContext, employee_id: str, data: EmployeeUpdate) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        fields = data.model_dump(exclude_unset=True, mode="json")
        if not fields:
            return await self.get_employee(ctx, employee_id)
        row = await self.repo.update_profile(employee_id, fields)
        if row is None:
            raise NotFound("employee_not_found")
        logger.info("employees.updated id=%s fields=%s", employee_id, sorted(fields))
        return row

    async def change_role(self, ctx: AuthContext, employee_id: str, role: RoleName) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        role_id = await self._role_id(role)
        row = await self.repo.update_profile(employee_id, {"role_id": role_id})
        if row is None:
            raise NotFound("employee_not_found")
        logger.info("employees.role_changed id=%s role=%s by=%s", employee_id, role.value, ctx.user_id)
        return row

    async def assign_team_lead(self, ctx: AuthContext, employee_id: str, lead_id: str) -> dict[str, Any]:
        """Set ``manager_id``; a lead below Team Lead is promoted first."""
        require(ctx, Capability.MANAGE_EMPLOYEES)
        if str(employee_id) == str(lead_id):
            raise ValidationError("self_manager: an employee cannot be their own team lead")
        lead = await self.repo.get_profile(lead_id)
        if not lead:
            raise NotFound("team_lead_not_found")
        if await self.repo.get_profile(employee_id) is None:
            raise NotFound("employee_not_found")
        if _role_of(lead) not in TRAINER_ROLES:
            await self.repo.update_profile(lead_id, {"role_id": await self._role_id(RoleName.TEAM_LEAD)})
            logger.info("employees.promoted id=%s role=%s", lead_id, RoleName.TEAM_LEAD.value)
        row = await self.repo.update_profile(employee_id, {"manager_id": lead_id})
        if row is None:
            raise NotFound("employee_not_found")
        return row

    async def unassign_team_lead(self, ctx: AuthContext, employee_id: str) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        row = await self.repo.update_profile(employee_id, {"manager_id": None})
        if row is None:
            raise NotFound("employee_not_found")
        return row

    async def _list_by_roles(self, roles: list[RoleName]) -> list[dict[str, Any]]:
        wanted = {r.value for r in roles}
        role_ids = [str(r["id"]) for r in await self.profiles.list_roles() if r.get("role_name") in wanted]
        return await self.repo.list_profiles_by_role_ids(role_ids)

    async def list_trainees(self, ctx: AuthContext) -> list[dict[str, Any]]:
        require(ctx, Capability.ASSIGN)
        return await self._list_by_roles([RoleName.TRAINEE])

    async def list_trainers(self, ctx: AuthContext) -> list[dict[str, Any]]:
        require(ctx, Capability.ASSIGN)
        return await self._list_by_roles([RoleName.MANAGEMENT, RoleName.HR, RoleName.TEAM_LEAD])

    # --- documents -----------------------------------------------------------
    async def upload_document(
        self,
        ctx: AuthContext,
        employee_id: str,
        document_name: str,
        filename: str,
        data: bytes,
        document_type: DocumentType = DocumentType.OTHER,
        content_type: Optional[str] = None,
    ) -> dict[str, Any]:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        if not (document_name or "").strip():
            raise ValidationError("document_name_required")
        if not data:
            raise ValidationError("file_required")
        path = document_path(employee_id, filename)
        await storage.upload_object(get_settings().documents_bucket, path, data, content_type=content_type)
        row = await self.repo.insert_document(
            {
                "employee_id": employee_id,
                "document_name": document_name.strip(),
                "document_type": document_type.value,
                "file_path": path,
                "uploaded_by": ctx.user_id,
            }
        )
        logger.info("employees.document_uploaded employee_id=%s path=%s bytes=%d", employee_id, path, len(data))
        return row

    async def list_documents(self, ctx: AuthContext, employee_id: str) -> list[dict[str, Any]]:
        require(ctx, Capability.MANAGE_EMPLOYEES, employee_id)
        return await self.repo.list_documents(employee_id)

    async def _document(self, document_id: str) -> dict[str, Any]:
        doc = await self.repo.get_document(document_id)
        if not doc:
            raise NotFound("document_not_found")
        return doc

    async def delete_document(self, ctx: AuthContext, document_id: str) -> None:
        require(ctx, Capability.MANAGE_EMPLOYEES)
        doc = await self._document(document_id)
        # storage object first, then the row
        await storage.remove_objects(get_settings().documents_bucket, [doc["file_path"]])
        await self.repo.delete_document(document_id)
        logger.info("employees.document_deleted id=%s path=%s", document_id, doc["file_path"])

    async def document_download_url(self, ctx: AuthContext, document_id: str) -> tuple[str, int]:
        doc = await self._document(document_id)
        require(ctx, Capability.MANAGE_EMPLOYEES, str(doc["employee_id"]))
        ttl = get_settings().signed_url_ttl_seconds
        url = await storage.create_signed_url(get_settings().documents_bucket, doc["file_path"], ttl)
        return url, ttl


employee_service = EmployeeService()
