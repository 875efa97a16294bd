from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class HolidayCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: Optional[date] = Field(None, description="Defaults to start_date for a single-day closure")


class HolidayResponse(BaseModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    created_at: datetime

    class Config:
        from_attributes = True
