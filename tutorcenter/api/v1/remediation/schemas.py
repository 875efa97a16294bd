from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class StatusHistoryEntry(BaseModel):
    status: str
    changed_by: str
    reason: Optional[str] = None
    changed_at: datetime

    class Config:
        from_attributes = True


class RemediationResponse(BaseModel):
    id: UUID
    student_id: UUID
    class_id: UUID
    absence_date: date
    kind: str
    status: str
    attendance_detail_id: Optional[UUID] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    tutor_name: Optional[str] = None
    completed_at: Optional[datetime] = None
    note: Optional[str] = None
    created_at: datetime
    history: List[StatusHistoryEntry] = []


class RemediationScheduleRequest(BaseModel):
    scheduled_date: date
    scheduled_time: Optional[str] = Field(None, max_length=11, description="HH:MM-HH:MM")
    tutor_name: Optional[str] = None
    reason: Optional[str] = None


class RemediationCompleteRequest(BaseModel):
    note: Optional[str] = None


class RemediationReopenRequest(BaseModel):
    reason: str = Field(..., min_length=1)
