"""Class sessions API router."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.dependencies import get_current_user
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from . import service
from .schemas import MakeupSessionCreate, SessionExpandRequest, SessionExpandResponse, SessionResponse

router = APIRouter(
    prefix="/api/v1/sessions",
    tags=["sessions"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/expand", response_model=SessionExpandResponse, status_code=status.HTTP_201_CREATED)
async def expand_sessions(
    payload: SessionExpandRequest,
    db: AsyncSession = Depends(get_db),
):
    """Generate the class's sessions from its schedule text."""
    try:
        return await service.expand_sessions(
            db,
            payload.class_id,
            from_date=payload.from_date,
            to_date=payload.to_date,
            max_sessions=payload.max_sessions,
            replace=payload.replace,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    class_id: UUID,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    session_status: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.list_sessions(db, class_id, from_date, to_date, session_status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/by-date", response_model=SessionResponse)
async def get_session_by_date(
    class_id: UUID,
    session_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
):
    obj = await service.find_session_by_class_and_date(db, class_id, session_date)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No session on this date")
    return obj


@router.post("/makeup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def append_makeup_session(
    payload: MakeupSessionCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.append_makeup_session(db, payload.class_id, payload.date, payload.time, payload.note)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.cancel_session(db, session_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
