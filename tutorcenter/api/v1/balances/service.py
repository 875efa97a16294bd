"""
Balance reconciliation.

A student's consumed-session counter has two sources: the stored `sessions_attended` (which
may include consumption typed in before per-session attendance existed) and the live count of
present/late attendance details. The reconciler folds each attendance summary into the stored
counter at most once, using `processed_attendance_ids` as the idempotency ledger.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Set, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.config import settings
from tutorcenter.core.enums import FROZEN_STUDENT_STATUSES, PRESENT_MARKS, StudentStatus
from tutorcenter.core.exceptions import NotFoundError
from tutorcenter.core.models import AttendanceDetail, AttendanceSummary, Student

from .schemas import StudentBalanceResponse

logger = logging.getLogger(__name__)


def _to_response(s: Student) -> StudentBalanceResponse:
    return StudentBalanceResponse(
        student_id=s.id,
        full_name=s.full_name,
        status=s.status,
        sessions_registered=s.sessions_registered or 0,
        sessions_attended=s.sessions_attended or 0,
        sessions_remaining=s.sessions_remaining or 0,
        debt_sessions=s.debt_sessions,
        debt_start_date=s.debt_start_date,
        last_attendance_date=s.last_attendance_date,
        processed_events=len(s.processed_attendance_ids or []),
    )


async def _lock_student(db: AsyncSession, student_id: UUID) -> Student:
    result = await db.execute(select(Student).where(Student.id == student_id).with_for_update())
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError(f"Student {student_id} not found")
    return student


async def _present_attendance(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
) -> List[Tuple[UUID, date]]:
    """(summary_id, date) of every summary where the student was marked on-time or late."""
    result = await db.execute(
        select(AttendanceSummary.id, AttendanceSummary.attendance_date)
        .join(AttendanceDetail, AttendanceDetail.summary_id == AttendanceSummary.id)
        .where(
            AttendanceDetail.student_id == student_id,
            AttendanceSummary.class_id == class_id,
            AttendanceDetail.status.in_(PRESENT_MARKS),
        )
        .order_by(AttendanceSummary.attendance_date)
    )
    return [(row[0], row[1]) for row in result.all()]


async def _created_before_ledger(
    db: AsyncSession,
    ledger: Sequence[str],
    candidates: Sequence[UUID],
) -> Set[UUID]:
    """
    Once the ledger is full its oldest ids have been dropped. Of the candidates, return the
    summaries created before every summary the ledger still remembers: those were folded in
    earlier. Keyed on creation time, not attendance date, so a new back-dated summary is
    never mistaken for an old one.
    """
    if len(ledger) < settings.processed_ledger_size or not candidates:
        return set()
    floor = (
        select(func.min(AttendanceSummary.created_at))
        .where(AttendanceSummary.id.in_([UUID(v) for v in ledger]))
        .scalar_subquery()
    )
    result = await db.execute(
        select(AttendanceSummary.id).where(
            AttendanceSummary.id.in_(list(candidates)),
            AttendanceSummary.created_at < floor,
        )
    )
    return set(result.scalars().all())


def _extend_ledger(ledger: Sequence[str], new_ids: Sequence[str]) -> List[str]:
    merged = list(ledger)
    for value in new_ids:
        if value not in merged:
            merged.append(value)
    return merged[-settings.processed_ledger_size:]


def apply_billing_status(student: Student) -> None:
    """
    Derive status from sessions_remaining. Reserved, dropped and trial students are left alone.
    Debt is sticky at zero: a debtor whose remaining lands on exactly 0 stays in debt.
    """
    if student.status in FROZEN_STUDENT_STATUSES:
        return
    remaining = student.sessions_remaining
    if remaining < 0:
        if student.status != StudentStatus.DEBT.value:
            logger.info(
                "Student %s enters debt (attended %d of %d)",
                student.id, student.sessions_attended, student.sessions_registered,
            )
            student.status = StudentStatus.DEBT.value
            student.debt_start_date = datetime.utcnow()
        student.debt_sessions = abs(remaining)
    elif remaining == 0:
        if student.status == StudentStatus.ACTIVE.value:
            student.status = StudentStatus.FULLY_CONSUMED.value
        elif student.status == StudentStatus.DEBT.value:
            student.debt_sessions = 0
    elif student.status in (StudentStatus.DEBT.value, StudentStatus.FULLY_CONSUMED.value):
        student.status = StudentStatus.ACTIVE.value
        student.debt_sessions = None
        student.debt_start_date = None


def _record_attended(student: Student, attended: int, ledger: List[str], latest: Optional[date]) -> None:
    student.sessions_attended = attended
    student.sessions_remaining = (student.sessions_registered or 0) - attended
    # Reassign rather than mutate so the JSON column is flagged dirty
    student.processed_attendance_ids = ledger
    if latest is not None and (student.last_attendance_date is None or latest > student.last_attendance_date):
        student.last_attendance_date = latest
    apply_billing_status(student)


async def reconcile(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
    summary_id: UUID,
) -> StudentBalanceResponse:
    """Fold one attendance summary into the student's balance, at most once."""
    student = await _lock_student(db, student_id)
    summary = await db.get(AttendanceSummary, summary_id)
    if not summary:
        raise NotFoundError(f"Attendance {summary_id} not found")

    live_count = len(await _present_attendance(db, student_id, class_id))
    stored_count = student.sessions_attended or 0
    ledger = list(student.processed_attendance_ids or [])
    key = str(summary_id)
    new_ids = [key]

    if live_count >= stored_count:
        # Attendance history has caught up with the stored baseline
        attended = live_count
    else:
        if key in ledger or summary_id in await _created_before_ledger(db, ledger, [summary_id]):
            attended = stored_count
            new_ids = []
            logger.debug("Attendance %s already counted for student %s", summary_id, student_id)
        else:
            attended = stored_count + 1
            logger.info(
                "Student %s: %d -> %d from attendance %s (historical baseline)",
                student_id, stored_count, attended, summary_id,
            )

    _record_attended(student, attended, _extend_ledger(ledger, new_ids), summary.attendance_date)
    await db.commit()
    await db.refresh(student)
    return _to_response(student)


async def recalculate_student_balance(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
) -> StudentBalanceResponse:
    """Manual full pass. Converges to the same state the incremental reconcile path reaches."""
    student = await _lock_student(db, student_id)
    present = await _present_attendance(db, student_id, class_id)
    stored_count = student.sessions_attended or 0
    ledger = list(student.processed_attendance_ids or [])

    if len(present) >= stored_count:
        attended = len(present)
        new_ids = [str(sid) for sid, _ in present if str(sid) not in ledger]
    else:
        unseen = [sid for sid, _ in present if str(sid) not in ledger]
        old = await _created_before_ledger(db, ledger, unseen)
        new_ids = [str(sid) for sid in unseen if sid not in old]
        attended = stored_count + len(new_ids)

    latest = present[-1][1] if present else None
    logger.info(
        "Recalculated student %s: stored=%d live=%d -> attended=%d",
        student_id, stored_count, len(present), attended,
    )
    _record_attended(student, attended, _extend_ledger(ledger, new_ids), latest)
    await db.commit()
    await db.refresh(student)
    return _to_response(student)


async def get_student_balance(db: AsyncSession, student_id: UUID) -> StudentBalanceResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError(f"Student {student_id} not found")
    return _to_response(student)
