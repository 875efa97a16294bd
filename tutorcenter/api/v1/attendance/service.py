"""
Attendance recorder.

Saving is a short saga. The summary upsert and the detail replacement commit together; session
completion, remediation and balance reconciliation then run as separately committed steps so a
failure in one of them never undoes the recorded attendance.
"""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from tutorcenter.api.v1.balances.service import reconcile
from tutorcenter.api.v1.remediation.service import create_from_absence
from tutorcenter.api.v1.sessions.service import (
    get_class_or_404,
    mark_session_completed,
    revert_sessions_for_attendance,
)
from tutorcenter.core.enums import PRESENT_MARKS, AttendanceMark, RemediationKind, SummaryStatus
from tutorcenter.core.exceptions import ConflictError, NotFoundError, ServiceError, StorageError, ValidationError
from tutorcenter.core.models import AttendanceDetail, AttendanceSummary, ClassSession, Student

from .schemas import (
    AttendanceDeleteResponse,
    AttendanceDetailResponse,
    AttendanceMarkInput,
    AttendanceSaveResponse,
    AttendanceSummaryResponse,
    BalanceFailure,
)

logger = logging.getLogger(__name__)


def tally_marks(statuses: Iterable[str]) -> Dict[str, int]:
    """Aggregate counts stored on the summary."""
    c = Counter(statuses)
    return {
        "total_students": sum(c.values()),
        "present_count": c[AttendanceMark.ON_TIME.value] + c[AttendanceMark.LATE.value],
        "absent_count": c[AttendanceMark.ABSENT.value],
        "reserved_count": c[AttendanceMark.RESERVED.value],
        "made_up_count": c[AttendanceMark.MADE_UP.value],
    }


def _summary_to_response(
    s: AttendanceSummary,
    details: List[AttendanceDetail],
) -> AttendanceSummaryResponse:
    return AttendanceSummaryResponse(
        id=s.id,
        class_id=s.class_id,
        attendance_date=s.attendance_date,
        session_id=s.session_id,
        session_number=s.session_number,
        total_students=s.total_students,
        present_count=s.present_count,
        absent_count=s.absent_count,
        reserved_count=s.reserved_count,
        made_up_count=s.made_up_count,
        status=s.status,
        created_by=s.created_by,
        created_at=s.created_at,
        updated_at=s.updated_at,
        details=[AttendanceDetailResponse.model_validate(d) for d in details],
    )


async def _details_for(db: AsyncSession, summary_id: UUID) -> List[AttendanceDetail]:
    result = await db.execute(
        select(AttendanceDetail).where(AttendanceDetail.summary_id == summary_id).order_by(AttendanceDetail.created_at)
    )
    return list(result.scalars().all())


async def _validate_marks(db: AsyncSession, marks: List[AttendanceMarkInput]) -> List[AttendanceMarkInput]:
    if not marks:
        raise ValidationError("At least one attendance mark is required")
    seen = set()
    for m in marks:
        if m.student_id in seen:
            raise ValidationError(f"Student {m.student_id} appears more than once")
        seen.add(m.student_id)

    finalized = [m for m in marks if m.status != AttendanceMark.UNSET.value]
    if not finalized:
        raise ValidationError("No student has a finalized mark")

    result = await db.execute(select(Student.id).where(Student.id.in_([m.student_id for m in finalized])))
    found = set(result.scalars().all())
    missing = [str(m.student_id) for m in finalized if m.student_id not in found]
    if missing:
        raise NotFoundError(f"Students not found: {', '.join(missing)}")
    return finalized


async def save_attendance(
    db: AsyncSession,
    class_id: UUID,
    attendance_date: date,
    marks: List[AttendanceMarkInput],
    session_id: Optional[UUID] = None,
    created_by: Optional[UUID] = None,
) -> AttendanceSaveResponse:
    """
    Record a class roster for one date.

    Re-saving the same (class, date) updates the summary in place and replaces its details
    wholesale. Each save is the complete set of finalized marks: students left unset are
    dropped, so saving different partial rosters one after another loses the earlier marks.
    """
    await get_class_or_404(db, class_id)
    session: Optional[ClassSession] = None
    if session_id is not None:
        session = await db.get(ClassSession, session_id)
        if not session or session.class_id != class_id:
            raise NotFoundError(f"Session {session_id} not found for class {class_id}")
        if session.session_date != attendance_date:
            raise ValidationError(f"Session {session_id} is on {session.session_date}, not {attendance_date}")
    finalized = await _validate_marks(db, marks)
    counts = tally_marks(m.status for m in finalized)

    result = await db.execute(
        select(AttendanceSummary).where(
            AttendanceSummary.class_id == class_id,
            AttendanceSummary.attendance_date == attendance_date,
        )
    )
    summary = result.scalar_one_or_none()
    try:
        if summary is None:
            summary = AttendanceSummary(
                class_id=class_id,
                attendance_date=attendance_date,
                status=SummaryStatus.TAKEN.value,
                created_by=created_by,
                **counts,
            )
            db.add(summary)
        else:
            for key, value in counts.items():
                setattr(summary, key, value)
            summary.status = SummaryStatus.TAKEN.value
            # Always write the row so the version check catches a concurrent save
            summary.updated_at = datetime.utcnow()
        if session is not None:
            summary.session_id = session.id
            summary.session_number = session.session_number
        await db.flush()
        summary_id = summary.id
        target_session_id = session.id if session is not None else None

        await db.execute(delete(AttendanceDetail).where(AttendanceDetail.summary_id == summary_id))
        db.add_all(
            [
                AttendanceDetail(
                    summary_id=summary_id,
                    student_id=m.student_id,
                    status=m.status,
                    note=m.note,
                    homework_completion=m.homework_completion,
                    test_name=m.test_name,
                    score=m.score,
                    bonus_points=m.bonus_points,
                    punctuality=m.punctuality,
                )
                for m in finalized
            ]
        )
        await db.commit()
    except (IntegrityError, StaleDataError):
        await db.rollback()
        raise ConflictError(f"Attendance for {attendance_date} was saved concurrently; retry")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to store attendance for class %s on %s", class_id, attendance_date)
        raise StorageError(f"Could not store attendance: {e.__class__.__name__}")

    logger.info(
        "Saved attendance %s for class %s on %s (%d marks, %d unset)",
        summary_id, class_id, attendance_date, len(finalized), len(marks) - len(finalized),
    )

    session_completed = False
    if target_session_id is not None and len(finalized) == len(marks):
        try:
            await mark_session_completed(db, target_session_id, summary_id)
            session_completed = True
        except (ServiceError, SQLAlchemyError):
            await db.rollback()
            logger.exception("Could not mark session %s completed for attendance %s", target_session_id, summary_id)

    remediation_ids: List[UUID] = []
    for m in finalized:
        if m.status != AttendanceMark.ABSENT.value:
            continue
        try:
            obligation = await create_from_absence(
                db, m.student_id, class_id, attendance_date, RemediationKind.ABSENCE.value
            )
            remediation_ids.append(obligation.id)
        except (ServiceError, SQLAlchemyError):
            await db.rollback()
            logger.exception("Could not create remediation for student %s on %s", m.student_id, attendance_date)

    balances = []
    failures: List[BalanceFailure] = []
    for m in finalized:
        if m.status not in PRESENT_MARKS:
            continue
        try:
            balances.append(await reconcile(db, m.student_id, class_id, summary_id))
        except ServiceError as e:
            await db.rollback()
            logger.warning("Balance reconcile failed for student %s: %s", m.student_id, e.message)
            failures.append(BalanceFailure(student_id=m.student_id, message=e.message))
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Balance reconcile failed for student %s", m.student_id)
            failures.append(BalanceFailure(student_id=m.student_id, message=e.__class__.__name__))

    return AttendanceSaveResponse(
        summary_id=summary_id,
        class_id=class_id,
        attendance_date=attendance_date,
        session_completed=session_completed,
        remediation_ids=remediation_ids,
        balances=balances,
        balance_failures=failures,
        **counts,
    )


async def get_attendance(db: AsyncSession, summary_id: UUID) -> AttendanceSummaryResponse:
    summary = await db.get(AttendanceSummary, summary_id)
    if not summary:
        raise NotFoundError(f"Attendance {summary_id} not found")
    return _summary_to_response(summary, await _details_for(db, summary_id))


async def find_attendance(
    db: AsyncSession,
    class_id: UUID,
    attendance_date: date,
) -> Optional[AttendanceSummaryResponse]:
    result = await db.execute(
        select(AttendanceSummary).where(
            AttendanceSummary.class_id == class_id,
            AttendanceSummary.attendance_date == attendance_date,
        )
    )
    summary = result.scalar_one_or_none()
    if not summary:
        return None
    return _summary_to_response(summary, await _details_for(db, summary.id))


async def list_attendance(
    db: AsyncSession,
    class_id: UUID,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[AttendanceSummaryResponse]:
    stmt = select(AttendanceSummary).where(AttendanceSummary.class_id == class_id)
    if from_date is not None:
        stmt = stmt.where(AttendanceSummary.attendance_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(AttendanceSummary.attendance_date <= to_date)
    result = await db.execute(stmt.order_by(AttendanceSummary.attendance_date))
    out = []
    for s in result.scalars().all():
        out.append(_summary_to_response(s, await _details_for(db, s.id)))
    return out


async def delete_attendance(db: AsyncSession, summary_id: UUID) -> AttendanceDeleteResponse:
    """Remove a summary and its details. Balances are not decremented."""
    summary = await db.get(AttendanceSummary, summary_id)
    if not summary:
        raise NotFoundError(f"Attendance {summary_id} not found")
    try:
        reverted = await revert_sessions_for_attendance(db, summary_id)
        result = await db.execute(delete(AttendanceDetail).where(AttendanceDetail.summary_id == summary_id))
        removed = result.rowcount or 0
        await db.delete(summary)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete attendance %s", summary_id)
        raise StorageError(f"Could not delete attendance: {e.__class__.__name__}")
    logger.info("Deleted attendance %s (%d details, %d sessions reverted)", summary_id, removed, reverted)
    return AttendanceDeleteResponse(summary_id=summary_id, details_removed=removed, sessions_reverted=reverted)
