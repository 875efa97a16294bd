"""Holiday registry. Attendance is refused by the API layer on dates covered here."""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.exceptions import ValidationError
from tutorcenter.core.models import Holiday

from .schemas import HolidayCreate, HolidayResponse

logger = logging.getLogger(__name__)


async def create_holiday(db: AsyncSession, payload: HolidayCreate) -> HolidayResponse:
    end = payload.end_date or payload.start_date
    if end < payload.start_date:
        raise ValidationError("end_date must be on or after start_date")
    holiday = Holiday(name=payload.name.strip(), start_date=payload.start_date, end_date=end)
    db.add(holiday)
    await db.commit()
    await db.refresh(holiday)
    logger.info("Registered holiday %r %s..%s", holiday.name, holiday.start_date, holiday.end_date)
    return HolidayResponse.model_validate(holiday)


async def list_holidays(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[HolidayResponse]:
    """Holidays overlapping the given range, earliest first."""
    stmt = select(Holiday)
    if from_date is not None:
        stmt = stmt.where(Holiday.end_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(Holiday.start_date <= to_date)
    result = await db.execute(stmt.order_by(Holiday.start_date))
    return [HolidayResponse.model_validate(h) for h in result.scalars().all()]


async def find_holiday_covering(db: AsyncSession, on_date: date) -> Optional[Holiday]:
    result = await db.execute(
        select(Holiday)
        .where(Holiday.start_date <= on_date, Holiday.end_date >= on_date)
        .order_by(Holiday.start_date)
        .limit(1)
    )
    return result.scalar_one_or_none()
