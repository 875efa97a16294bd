"""Student balance API router."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.dependencies import get_current_user
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from . import service
from .schemas import RecalculateRequest, StudentBalanceResponse

router = APIRouter(
    prefix="/api/v1/balances",
    tags=["balances"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/students/{student_id}", response_model=StudentBalanceResponse)
async def get_student_balance(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.get_student_balance(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/students/{student_id}/recalculate", response_model=StudentBalanceResponse)
async def recalculate_student_balance(
    student_id: UUID,
    payload: RecalculateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recount consumed sessions for one class and re-derive the billing status."""
    try:
        return await service.recalculate_student_balance(db, student_id, payload.class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
