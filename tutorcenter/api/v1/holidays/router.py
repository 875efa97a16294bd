"""Holiday API router."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.dependencies import get_current_user
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from . import service
from .schemas import HolidayCreate, HolidayResponse

router = APIRouter(
    prefix="/api/v1/holidays",
    tags=["holidays"],
    dependencies=[Depends(get_current_user)],
)


@router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: HolidayCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.create_holiday(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[HolidayResponse])
async def list_holidays(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_holidays(db, from_date, to_date)
