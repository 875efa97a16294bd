"""
Expand a weekly schedule into dated session drafts.
Pure and deterministic: the output depends only on the arguments.
"""

from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from tutorcenter.core.schedule_parser import ScheduleSpec, sunday_based_weekday, weekday_label

from .schemas import SessionDraft


def expand_schedule(
    spec: ScheduleSpec,
    class_id: UUID,
    from_date: date,
    to_date: date,
    max_sessions: int,
    room: Optional[str] = None,
    teacher_name: Optional[str] = None,
) -> List[SessionDraft]:
    """
    One draft per date in [from_date, to_date] whose weekday is on the schedule, numbered 1..N,
    stopping after max_sessions. An empty weekday set yields no drafts: unlike the parser's
    "any day" reading, expansion never falls back to every day.
    """
    if spec.is_empty or max_sessions <= 0 or to_date < from_date:
        return []

    drafts: List[SessionDraft] = []
    current = from_date
    while current <= to_date and len(drafts) < max_sessions:
        weekday = sunday_based_weekday(current)
        if weekday in spec.weekdays:
            drafts.append(
                SessionDraft(
                    class_id=class_id,
                    session_number=len(drafts) + 1,
                    session_date=current,
                    day_of_week=weekday_label(weekday),
                    time_window=spec.time_window,
                    room=room,
                    teacher_name=teacher_name,
                )
            )
        current += timedelta(days=1)
    return drafts
