"""Remediation obligations raised from absences, and their schedule/complete/reopen lifecycle."""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.enums import AttendanceMark, RemediationKind, RemediationStatus
from tutorcenter.core.exceptions import ConflictError, NotFoundError, ValidationError
from tutorcenter.core.models import (
    AttendanceDetail,
    AttendanceSummary,
    RemediationObligation,
    RemediationStatusHistory,
)
from tutorcenter.core.models.remediation import SYSTEM_ACTOR

from .schemas import RemediationResponse, StatusHistoryEntry

logger = logging.getLogger(__name__)

AUTO_CREATED_REASON = "auto-created from attendance"
KINDS = tuple(k.value for k in RemediationKind)
STATUSES = tuple(s.value for s in RemediationStatus)


def _log_transition(
    db: AsyncSession,
    obligation_id: UUID,
    status: str,
    changed_by: str,
    reason: Optional[str] = None,
) -> None:
    """Append a history row. Caller commits."""
    db.add(
        RemediationStatusHistory(
            obligation_id=obligation_id,
            status=status,
            changed_by=changed_by,
            reason=reason,
        )
    )


async def _to_response(db: AsyncSession, o: RemediationObligation) -> RemediationResponse:
    result = await db.execute(
        select(RemediationStatusHistory)
        .where(RemediationStatusHistory.obligation_id == o.id)
        .order_by(RemediationStatusHistory.changed_at, RemediationStatusHistory.id)
    )
    return RemediationResponse(
        id=o.id,
        student_id=o.student_id,
        class_id=o.class_id,
        absence_date=o.absence_date,
        kind=o.kind,
        status=o.status,
        attendance_detail_id=o.attendance_detail_id,
        scheduled_date=o.scheduled_date,
        scheduled_time=o.scheduled_time,
        tutor_name=o.tutor_name,
        completed_at=o.completed_at,
        note=o.note,
        created_at=o.created_at,
        history=[StatusHistoryEntry.model_validate(h) for h in result.scalars().all()],
    )


async def _find_detail(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
    absence_date: date,
) -> Optional[AttendanceDetail]:
    result = await db.execute(
        select(AttendanceDetail)
        .join(AttendanceSummary, AttendanceSummary.id == AttendanceDetail.summary_id)
        .where(
            AttendanceDetail.student_id == student_id,
            AttendanceSummary.class_id == class_id,
            AttendanceSummary.attendance_date == absence_date,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_from_absence(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
    absence_date: date,
    kind: str = RemediationKind.ABSENCE.value,
) -> RemediationResponse:
    """
    Open a pending make-up obligation for an absence. One obligation exists per
    (student, class, date, kind); saving the same absence again only refreshes the link
    to the attendance detail, which is replaced on every save.
    """
    if kind not in KINDS:
        raise ValidationError(f"Invalid remediation kind: {kind}")
    detail = await _find_detail(db, student_id, class_id, absence_date)
    detail_id = detail.id if detail else None

    result = await db.execute(
        select(RemediationObligation).where(
            RemediationObligation.student_id == student_id,
            RemediationObligation.class_id == class_id,
            RemediationObligation.absence_date == absence_date,
            RemediationObligation.kind == kind,
        )
    )
    obligation = result.scalar_one_or_none()
    if obligation:
        if obligation.attendance_detail_id != detail_id:
            obligation.attendance_detail_id = detail_id
            await db.commit()
            await db.refresh(obligation)
        return await _to_response(db, obligation)

    obligation = RemediationObligation(
        student_id=student_id,
        class_id=class_id,
        absence_date=absence_date,
        kind=kind,
        status=RemediationStatus.PENDING.value,
        attendance_detail_id=detail_id,
    )
    db.add(obligation)
    await db.flush()
    _log_transition(db, obligation.id, RemediationStatus.PENDING.value, SYSTEM_ACTOR, AUTO_CREATED_REASON)
    await db.commit()
    await db.refresh(obligation)
    if detail_id is None:
        logger.warning("No attendance detail found for absence of %s on %s", student_id, absence_date)
    logger.info("Created %s remediation %s for student %s on %s", kind, obligation.id, student_id, absence_date)
    return await _to_response(db, obligation)


async def _get_obligation(db: AsyncSession, obligation_id: UUID) -> RemediationObligation:
    obligation = await db.get(RemediationObligation, obligation_id)
    if not obligation:
        raise NotFoundError(f"Remediation {obligation_id} not found")
    return obligation


async def _recount_summary(db: AsyncSession, summary_id: UUID) -> None:
    """Keep summary counts in step after a detail's mark changes. Caller commits."""
    summary = await db.get(AttendanceSummary, summary_id)
    if not summary:
        return
    rows = await db.execute(
        select(AttendanceDetail.status, func.count(AttendanceDetail.id))
        .where(AttendanceDetail.summary_id == summary_id)
        .group_by(AttendanceDetail.status)
    )
    counts = dict(rows.all())
    summary.absent_count = counts.get(AttendanceMark.ABSENT.value, 0)
    summary.made_up_count = counts.get(AttendanceMark.MADE_UP.value, 0)


async def _set_detail_mark(db: AsyncSession, obligation: RemediationObligation, mark: str) -> None:
    if obligation.attendance_detail_id is None:
        return
    detail = await db.get(AttendanceDetail, obligation.attendance_detail_id)
    if not detail or detail.status == mark:
        return
    detail.status = mark
    await db.flush()
    await _recount_summary(db, detail.summary_id)


async def schedule_obligation(
    db: AsyncSession,
    obligation_id: UUID,
    scheduled_date: date,
    actor: str,
    scheduled_time: Optional[str] = None,
    tutor_name: Optional[str] = None,
    reason: Optional[str] = None,
) -> RemediationResponse:
    """Book a make-up slot. A scheduled obligation can be rebooked."""
    obligation = await _get_obligation(db, obligation_id)
    if obligation.status == RemediationStatus.DONE.value:
        raise ConflictError("Remediation is already done; reopen it first")
    obligation.status = RemediationStatus.SCHEDULED.value
    obligation.scheduled_date = scheduled_date
    obligation.scheduled_time = scheduled_time
    obligation.tutor_name = tutor_name
    _log_transition(db, obligation.id, RemediationStatus.SCHEDULED.value, actor, reason)
    await db.commit()
    await db.refresh(obligation)
    return await _to_response(db, obligation)


async def complete_obligation(
    db: AsyncSession,
    obligation_id: UUID,
    actor: str,
    note: Optional[str] = None,
) -> RemediationResponse:
    """Mark the make-up as held; the originating absence becomes made-up."""
    obligation = await _get_obligation(db, obligation_id)
    if obligation.status == RemediationStatus.DONE.value:
        raise ConflictError("Remediation is already done")
    obligation.status = RemediationStatus.DONE.value
    obligation.completed_at = datetime.utcnow()
    if note:
        obligation.note = note
    await _set_detail_mark(db, obligation, AttendanceMark.MADE_UP.value)
    _log_transition(db, obligation.id, RemediationStatus.DONE.value, actor, note)
    await db.commit()
    await db.refresh(obligation)
    logger.info("Remediation %s completed by %s", obligation_id, actor)
    return await _to_response(db, obligation)


async def reopen_obligation(
    db: AsyncSession,
    obligation_id: UUID,
    actor: str,
    reason: str,
) -> RemediationResponse:
    """Undo a completion. The absence is restored and the obligation goes back to scheduled."""
    obligation = await _get_obligation(db, obligation_id)
    if obligation.status != RemediationStatus.DONE.value:
        raise ConflictError("Only completed remediations can be reopened")
    obligation.status = RemediationStatus.SCHEDULED.value
    obligation.completed_at = None
    await _set_detail_mark(db, obligation, AttendanceMark.ABSENT.value)
    _log_transition(db, obligation.id, RemediationStatus.SCHEDULED.value, actor, reason)
    await db.commit()
    await db.refresh(obligation)
    logger.info("Remediation %s reopened by %s: %s", obligation_id, actor, reason)
    return await _to_response(db, obligation)


async def list_obligations(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> List[RemediationResponse]:
    if status is not None and status not in STATUSES:
        raise ValidationError(f"Invalid remediation status: {status}")
    stmt = select(RemediationObligation)
    if student_id is not None:
        stmt = stmt.where(RemediationObligation.student_id == student_id)
    if class_id is not None:
        stmt = stmt.where(RemediationObligation.class_id == class_id)
    if status is not None:
        stmt = stmt.where(RemediationObligation.status == status)
    result = await db.execute(stmt.order_by(RemediationObligation.absence_date, RemediationObligation.created_at))
    return [await _to_response(db, o) for o in result.scalars().all()]
