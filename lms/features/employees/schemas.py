from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from lms.common.enums import EmployeeStatus, RoleName


class EmployeeCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    employee_code: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[RoleName] = None


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_code: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    date_of_joining: Optional[date] = None
    current_status: Optional[EmployeeStatus] = None


class RoleChange(BaseModel):
    role: RoleName


class TeamLeadAssign(BaseModel):
    lead_id: str


class Employee(BaseModel):
    id: str
    employee_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    current_status: Optional[str] = None
    date_of_joining: Optional[date] = None
    manager_id: Optional[str] = None
    role: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role_name(cls, v: Any) -> Any:
        if isinstance(v, list):
            v = v[0] if v else None
        if isinstance(v, dict):
            return v.get("role_name")
        return v


class EmployeeDocument(BaseModel):
    id: str
    employee_id: str
    document_name: str
    document_type: Optional[str] = None
    file_path: str
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None


class SignedUrl(BaseModel):
    url: str
    expires_in: int
