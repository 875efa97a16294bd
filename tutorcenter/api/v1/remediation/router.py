"""Remediation (make-up obligation) API router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.auth.dependencies import get_current_user
from tutorcenter.auth.schemas import CurrentUser
from tutorcenter.core.exceptions import ServiceError
from tutorcenter.db.session import get_db

from . import service
from .schemas import (
    RemediationCompleteRequest,
    RemediationReopenRequest,
    RemediationResponse,
    RemediationScheduleRequest,
)

router = APIRouter(prefix="/api/v1/remediation", tags=["remediation"])


@router.get("", response_model=List[RemediationResponse])
async def list_remediations(
    student_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.list_obligations(db, student_id, class_id, status_filter)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/schedule", response_model=RemediationResponse)
async def schedule_remediation(
    obligation_id: UUID,
    payload: RemediationScheduleRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.schedule_obligation(
            db,
            obligation_id,
            payload.scheduled_date,
            current_user.actor,
            scheduled_time=payload.scheduled_time,
            tutor_name=payload.tutor_name,
            reason=payload.reason,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/complete", response_model=RemediationResponse)
async def complete_remediation(
    obligation_id: UUID,
    payload: RemediationCompleteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.complete_obligation(db, obligation_id, current_user.actor, payload.note)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{obligation_id}/reopen", response_model=RemediationResponse)
async def reopen_remediation(
    obligation_id: UUID,
    payload: RemediationReopenRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.reopen_obligation(db, obligation_id, current_user.actor, payload.reason)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
