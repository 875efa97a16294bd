"""Attendance API router."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.api.v1.holidays.service import find_holiday_covering
from tutorcenter.auth.dependencies import get_current_user
from tutorcenter.auth.schemas import CurrentUser
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from . import service
from .schemas import (
    AttendanceDeleteResponse,
    AttendanceSaveRequest,
    AttendanceSaveResponse,
    AttendanceSummaryResponse,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post("", response_model=AttendanceSaveResponse, status_code=status.HTTP_201_CREATED)
async def save_attendance(
    payload: AttendanceSaveRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Save the roster for a class and date. The center must be open on that date."""
    holiday = await find_holiday_covering(db, payload.date)
    if holiday:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{payload.date} falls within holiday '{holiday.name}'",
        )
    try:
        return await service.save_attendance(
            db,
            payload.class_id,
            payload.date,
            payload.marks,
            session_id=payload.session_id,
            created_by=current_user.id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AttendanceSummaryResponse])
async def list_attendance(
    class_id: UUID,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.list_attendance(db, class_id, from_date, to_date)


@router.get("/{summary_id}", response_model=AttendanceSummaryResponse)
async def get_attendance(
    summary_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.get_attendance(db, summary_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{summary_id}", response_model=AttendanceDeleteResponse)
async def delete_attendance(
    summary_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Delete an attendance record and put its session back on the schedule."""
    try:
        return await service.delete_attendance(db, summary_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
