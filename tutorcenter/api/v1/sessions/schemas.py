from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from tutorcenter.core.enums import SessionStatus


SESSION_STATUSES = tuple(s.value for s in SessionStatus)


class SessionDraft(BaseModel):
    """A session produced by the expander, not yet persisted."""

    class_id: UUID
    session_number: int
    session_date: date
    day_of_week: str
    time_window: Optional[str] = None
    room: Optional[str] = None
    teacher_name: Optional[str] = None


class SessionExpandRequest(BaseModel):
    """Generate the class's sessions from its schedule text."""

    class_id: UUID
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    max_sessions: Optional[int] = Field(None, ge=1, le=500)
    replace: bool = Field(False, description="Delete the class's existing sessions and regenerate")


class MakeupSessionCreate(BaseModel):
    class_id: UUID
    date: date
    time: Optional[str] = Field(None, description="HH:MM-HH:MM")
    note: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time_window(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().replace(" ", "")
        parts = v.split("-")
        if len(parts) != 2:
            raise ValueError("time must look like 18:00-19:30")
        for part in parts:
            datetime.strptime(part, "%H:%M")
        return v


class SessionResponse(BaseModel):
    id: UUID
    class_id: UUID
    session_number: int
    session_date: date
    day_of_week: str
    time_window: Optional[str] = None
    room: Optional[str] = None
    teacher_name: Optional[str] = None
    status: str
    is_makeup: bool
    attendance_id: Optional[UUID] = None
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SessionExpandResponse(BaseModel):
    class_id: UUID
    weekdays: List[int]
    weekday_summary: str = Field("", description="e.g. \"T2, T4, T6\"")
    time_window: Optional[str] = None
    created: int
    removed: int
    sessions: List[SessionResponse]
