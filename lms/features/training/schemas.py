from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from lms.common.enums import MeetingPlatform, SessionType


class SessionCreate(BaseModel):
    session_name: str = Field(min_length=1)
    session_type: SessionType = SessionType.TRAINING
    trainer_id: str
    start_datetime: datetime
    end_datetime: datetime
    meeting_platform: Optional[MeetingPlatform] = None
    meeting_link: str = Field(min_length=1)


class AttendeeAssign(BaseModel):
    employee_ids: list[str] = Field(min_length=1)


class TrainingSession(BaseModel):
    id: str
    session_name: str
    session_type: str
    trainer_id: str
    start_datetime: datetime
    end_datetime: datetime
    meeting_platform: Optional[str] = None
    meeting_link: str
    attendees: list[str] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
