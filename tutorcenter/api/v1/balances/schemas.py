from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class StudentBalanceResponse(BaseModel):
    """Session balance of one student after the latest reconciliation pass."""

    student_id: UUID
    full_name: str
    status: str
    sessions_registered: int
    sessions_attended: int
    sessions_remaining: int
    debt_sessions: Optional[int] = None
    debt_start_date: Optional[datetime] = None
    last_attendance_date: Optional[date] = None
    processed_events: int


class RecalculateRequest(BaseModel):
    class_id: UUID
