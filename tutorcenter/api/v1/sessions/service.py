"""Session store: generation from the class schedule, lookups, completion and make-ups."""

import logging
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.core.config import settings
from tutorcenter.core.exceptions import ConflictError, NotFoundError, ValidationError
from tutorcenter.core.models import CenterClass, ClassSession
from tutorcenter.core.models.class_session import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_MAKEUP,
    STATUS_SCHEDULED,
)
from tutorcenter.core.schedule_parser import format_weekdays, parse_schedule, sunday_based_weekday, weekday_label

from .expander import expand_schedule
from .schemas import SESSION_STATUSES, SessionExpandResponse, SessionResponse

logger = logging.getLogger(__name__)


def _to_response(s: ClassSession) -> SessionResponse:
    return SessionResponse.model_validate(s)


async def get_class_or_404(db: AsyncSession, class_id: UUID) -> CenterClass:
    cl = await db.get(CenterClass, class_id)
    if not cl:
        raise NotFoundError(f"Class {class_id} not found")
    return cl


async def expand_sessions(
    db: AsyncSession,
    class_id: UUID,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    max_sessions: Optional[int] = None,
    replace: bool = False,
) -> SessionExpandResponse:
    """Generate and persist the class's regular sessions. replace=True is the bulk regeneration path."""
    cl = await get_class_or_404(db, class_id)
    spec = parse_schedule(cl.schedule)

    start = from_date or cl.start_date
    if start is None:
        raise ValidationError("from_date is required when the class has no start date")
    end = to_date or cl.end_date or (start + timedelta(days=settings.session_horizon_days))
    if end < start:
        raise ValidationError("to_date must be on or after from_date")
    cap = max_sessions or cl.total_sessions or settings.default_max_sessions

    existing_count = (
        await db.execute(select(func.count(ClassSession.id)).where(ClassSession.class_id == class_id))
    ).scalar_one()
    if existing_count and not replace:
        raise ConflictError(
            f"Class already has {existing_count} sessions; pass replace=true to regenerate them"
        )

    drafts = expand_schedule(spec, class_id, start, end, cap, room=cl.room, teacher_name=cl.teacher_name)
    if spec.is_empty:
        logger.warning("Could not read weekdays from schedule %r of class %s", cl.schedule, class_id)

    removed = 0
    if existing_count:
        result = await db.execute(delete(ClassSession).where(ClassSession.class_id == class_id))
        removed = result.rowcount or 0

    rows = [ClassSession(status=STATUS_SCHEDULED, is_makeup=False, **d.model_dump()) for d in drafts]
    db.add_all(rows)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Sessions for this class were changed concurrently; retry")
    logger.info(
        "Expanded %d sessions for class %s (%s..%s, removed %d)", len(rows), class_id, start, end, removed
    )
    return SessionExpandResponse(
        class_id=class_id,
        weekdays=spec.weekdays,
        weekday_summary=format_weekdays(spec.weekdays),
        time_window=spec.time_window,
        created=len(rows),
        removed=removed,
        sessions=[_to_response(s) for s in rows],
    )


async def list_sessions(
    db: AsyncSession,
    class_id: UUID,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    status: Optional[str] = None,
) -> List[SessionResponse]:
    """Sessions of a class by date ascending. Rows with non-positive numbers are never shown."""
    if status is not None and status not in SESSION_STATUSES:
        raise ValidationError(f"Invalid session status: {status}")
    stmt = select(ClassSession).where(
        ClassSession.class_id == class_id,
        ClassSession.session_number > 0,
    )
    if from_date is not None:
        stmt = stmt.where(ClassSession.session_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(ClassSession.session_date <= to_date)
    if status is not None:
        stmt = stmt.where(ClassSession.status == status)
    stmt = stmt.order_by(ClassSession.session_date, ClassSession.session_number)
    result = await db.execute(stmt)
    return [_to_response(s) for s in result.scalars().all()]


async def find_session_by_class_and_date(
    db: AsyncSession,
    class_id: UUID,
    session_date: date,
) -> Optional[ClassSession]:
    """The regular session on that date if there is one, else a make-up on that date."""
    result = await db.execute(
        select(ClassSession)
        .where(
            ClassSession.class_id == class_id,
            ClassSession.session_date == session_date,
            ClassSession.session_number > 0,
        )
        .order_by(ClassSession.is_makeup, ClassSession.session_number)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def mark_session_completed(
    db: AsyncSession,
    session_id: UUID,
    summary_id: UUID,
) -> ClassSession:
    """Link the session to its attendance summary. Repeating the call with the same summary is a no-op."""
    session = await db.get(ClassSession, session_id)
    if not session:
        raise NotFoundError(f"Session {session_id} not found")
    if session.status == STATUS_COMPLETED and session.attendance_id == summary_id:
        return session
    if session.attendance_id is not None and session.attendance_id != summary_id:
        raise ConflictError(f"Session {session_id} is already linked to attendance {session.attendance_id}")
    if session.status == STATUS_CANCELLED:
        raise ConflictError(f"Session {session_id} was cancelled")
    session.status = STATUS_COMPLETED
    session.attendance_id = summary_id
    await db.commit()
    await db.refresh(session)
    return session


async def cancel_session(db: AsyncSession, session_id: UUID) -> SessionResponse:
    session = await db.get(ClassSession, session_id)
    if not session:
        raise NotFoundError(f"Session {session_id} not found")
    if session.status == STATUS_CANCELLED:
        return _to_response(session)
    if session.status not in (STATUS_SCHEDULED, STATUS_MAKEUP):
        raise ConflictError(f"Only upcoming sessions can be cancelled (status is {session.status})")
    session.status = STATUS_CANCELLED
    await db.commit()
    await db.refresh(session)
    return _to_response(session)


async def _max_session_number(db: AsyncSession, class_id: UUID) -> int:
    result = await db.execute(
        select(func.max(ClassSession.session_number)).where(
            ClassSession.class_id == class_id,
            ClassSession.session_number > 0,
        )
    )
    return result.scalar_one_or_none() or 0


async def append_makeup_session(
    db: AsyncSession,
    class_id: UUID,
    session_date: date,
    time_window: Optional[str] = None,
    note: Optional[str] = None,
) -> SessionResponse:
    """Add a make-up meeting numbered after the class's current last session."""
    cl = await get_class_or_404(db, class_id)
    regular = await db.execute(
        select(ClassSession.id).where(
            ClassSession.class_id == class_id,
            ClassSession.session_date == session_date,
            ClassSession.is_makeup.is_(False),
        ).limit(1)
    )
    if regular.scalar_one_or_none():
        raise ConflictError(f"A regular session already exists for this class on {session_date}")

    session = ClassSession(
        class_id=class_id,
        session_number=await _max_session_number(db, class_id) + 1,
        session_date=session_date,
        day_of_week=weekday_label(sunday_based_weekday(session_date)),
        time_window=time_window,
        room=cl.room,
        teacher_name=cl.teacher_name,
        status=STATUS_MAKEUP,
        is_makeup=True,
        note=note or "Make-up session",
    )
    db.add(session)
    await db.commit()
    await db.refresh(session)
    logger.info("Appended make-up session #%d for class %s on %s", session.session_number, class_id, session_date)
    return _to_response(session)


async def revert_sessions_for_attendance(db: AsyncSession, summary_id: UUID) -> int:
    """Detach sessions from a deleted attendance summary and put them back on the schedule. Caller commits."""
    result = await db.execute(select(ClassSession).where(ClassSession.attendance_id == summary_id))
    sessions = result.scalars().all()
    for s in sessions:
        s.attendance_id = None
        s.status = STATUS_MAKEUP if s.is_makeup else STATUS_SCHEDULED
    return len(sessions)
