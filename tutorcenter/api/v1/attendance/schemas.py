from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from tutorcenter.api.v1.balances.schemas import StudentBalanceResponse
from tutorcenter.core.enums import AttendanceMark, Punctuality


# Empty string means "not decided yet"; such marks are dropped on save
MARK_VALUES = tuple(m.value for m in AttendanceMark)
PUNCTUALITY_VALUES = tuple(p.value for p in Punctuality)


class AttendanceMarkInput(BaseModel):
    """One student's mark in a roster save."""

    student_id: UUID
    status: str = Field("", description="on-time, late, absent, reserved, made-up; empty = unset")
    note: Optional[str] = None
    homework_completion: Optional[int] = Field(None, ge=0, le=100)
    test_name: Optional[str] = None
    score: Optional[float] = None
    bonus_points: Optional[int] = None
    punctuality: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in MARK_VALUES:
            raise ValueError(f"status must be one of {', '.join(MARK_VALUES[1:])} or empty")
        return v

    @field_validator("punctuality")
    @classmethod
    def validate_punctuality(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if v not in PUNCTUALITY_VALUES:
            raise ValueError("punctuality must be on-time or late")
        return v


class AttendanceSaveRequest(BaseModel):
    class_id: UUID
    date: date
    session_id: Optional[UUID] = None
    marks: List[AttendanceMarkInput]


class AttendanceDetailResponse(BaseModel):
    id: UUID
    student_id: UUID
    status: str
    note: Optional[str] = None
    homework_completion: Optional[int] = None
    test_name: Optional[str] = None
    score: Optional[float] = None
    bonus_points: Optional[int] = None
    punctuality: Optional[str] = None

    class Config:
        from_attributes = True


class AttendanceSummaryResponse(BaseModel):
    id: UUID
    class_id: UUID
    attendance_date: date
    session_id: Optional[UUID] = None
    session_number: Optional[int] = None
    total_students: int
    present_count: int
    absent_count: int
    reserved_count: int
    made_up_count: int
    status: str
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    details: List[AttendanceDetailResponse] = []


class BalanceFailure(BaseModel):
    student_id: UUID
    message: str


class AttendanceSaveResponse(BaseModel):
    """Outcome of a save. The attendance itself is committed even when later steps report failures."""

    summary_id: UUID
    class_id: UUID
    attendance_date: date
    total_students: int
    present_count: int
    absent_count: int
    reserved_count: int
    made_up_count: int
    session_completed: bool = False
    remediation_ids: List[UUID] = []
    balances: List[StudentBalanceResponse] = []
    balance_failures: List[BalanceFailure] = []


class AttendanceDeleteResponse(BaseModel):
    summary_id: UUID
    details_removed: int
    sessions_reverted: int
