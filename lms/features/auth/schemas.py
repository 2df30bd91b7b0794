from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: Optional[str] = None


class RoleOut(BaseModel):
    id: str
    role_name: str
    role_description: Optional[str] = None


class SessionOut(BaseModel):
    user_id: str
    role: Optional[str] = None
    pending_role: bool
    capabilities: list[str]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    session: SessionOut
