from datetime import date, timedelta
from typing import Dict
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.api.v1.attendance.schemas import AttendanceMarkInput
from tutorcenter.api.v1.attendance.service import save_attendance
from tutorcenter.api.v1.balances.service import reconcile, recalculate_student_balance
from tutorcenter.core.config import settings
from tutorcenter.core.exceptions import NotFoundError
from tutorcenter.core.models import CenterClass

FIRST_DAY = date(2024, 3, 4)


async def _save(db: AsyncSession, class_id: UUID, on: date, marks: Dict[UUID, str]) -> UUID:
    result = await save_attendance(
        db,
        class_id,
        on,
        [AttendanceMarkInput(student_id=sid, status=st) for sid, st in marks.items()],
    )
    return result.summary_id


@pytest.mark.asyncio
async def test_reconcile_counts_summary_at_most_once(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=20, attended=19)
    summary_id = await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})

    again = await reconcile(db_session, student.id, center_class.id, summary_id)
    twice = await reconcile(db_session, student.id, center_class.id, summary_id)
    assert again.sessions_attended == twice.sessions_attended == 20
    assert twice.processed_events == 1


@pytest.mark.asyncio
async def test_live_count_takes_over_when_history_catches_up(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=10, attended=0)
    for i in range(3):
        await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=2 * i), {student.id: "late"})
    await db_session.refresh(student)
    assert student.sessions_attended == 3
    assert student.sessions_remaining == 7
    assert len(student.processed_attendance_ids) == 3
    assert student.last_attendance_date == FIRST_DAY + timedelta(days=4)


@pytest.mark.asyncio
async def test_absent_and_reserved_do_not_consume(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    a = await make_student("An", registered=10, attended=4)
    b = await make_student("Binh", registered=10, attended=4)
    await _save(db_session, center_class.id, FIRST_DAY, {a.id: "absent", b.id: "reserved"})
    await db_session.refresh(a)
    await db_session.refresh(b)
    assert a.sessions_attended == b.sessions_attended == 4
    assert a.processed_attendance_ids == []


@pytest.mark.asyncio
async def test_entering_debt(db_session: AsyncSession, center_class: CenterClass, make_student) -> None:
    student = await make_student(registered=1, attended=0)
    await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.status == "fully-consumed"

    await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=1), {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_remaining == -1
    assert student.status == "debt"
    assert student.debt_sessions == 1
    assert student.debt_start_date is not None

    started = student.debt_start_date
    await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=2), {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.debt_sessions == 2
    assert student.debt_start_date == started


@pytest.mark.asyncio
async def test_debt_is_not_downgraded_at_zero(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=20, attended=19, status="debt")
    student.debt_sessions = 1
    await db_session.commit()

    await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_remaining == 0
    assert student.status == "debt"
    assert student.debt_sessions == 0


@pytest.mark.asyncio
async def test_topped_up_debtor_returns_to_active(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=20, attended=5, status="debt")
    student.debt_sessions = 3
    await db_session.commit()

    await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 6
    assert student.status == "active"
    assert student.debt_sessions is None


@pytest.mark.asyncio
@pytest.mark.parametrize("frozen", ["reserved", "dropped", "trial"])
async def test_frozen_statuses_are_left_alone(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
    frozen: str,
) -> None:
    student = await make_student(registered=1, attended=5, status=frozen)
    await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 6
    assert student.sessions_remaining == -5
    assert student.status == frozen
    assert student.debt_sessions is None


@pytest.mark.asyncio
async def test_ledger_is_bounded(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
    monkeypatch,
) -> None:
    monkeypatch.setattr(settings, "processed_ledger_size", 3)
    student = await make_student(registered=100, attended=50)
    days = [FIRST_DAY + timedelta(days=i) for i in range(5)]
    ids = [await _save(db_session, center_class.id, d, {student.id: "on-time"}) for d in days]

    await db_session.refresh(student)
    assert student.sessions_attended == 55
    assert student.processed_attendance_ids == [str(i) for i in ids[-3:]]

    # The oldest summary fell out of the ledger but is still recognised as counted
    await _save(db_session, center_class.id, days[0], {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 55


@pytest.mark.asyncio
async def test_new_back_dated_attendance_counts_with_full_ledger(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
    monkeypatch,
) -> None:
    monkeypatch.setattr(settings, "processed_ledger_size", 3)
    student = await make_student(registered=100, attended=50)
    for offset in (10, 11, 12):
        await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=offset), {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 53

    # Entered late for a meeting older than anything in the ledger
    late_entry = await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 54
    assert student.processed_attendance_ids[-1] == str(late_entry)

    again = await recalculate_student_balance(db_session, student.id, center_class.id)
    assert again.sessions_attended == 54


@pytest.mark.asyncio
async def test_recalculate_matches_incremental_path(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=20, attended=10)
    for i in range(3):
        await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=i), {student.id: "on-time"})
    await db_session.refresh(student)
    assert student.sessions_attended == 13

    balance = await recalculate_student_balance(db_session, student.id, center_class.id)
    assert balance.sessions_attended == 13
    assert balance.sessions_remaining == 7
    assert balance.processed_events == 3


@pytest.mark.asyncio
async def test_recalculate_folds_unrecorded_attendance(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=12, attended=10)
    for i in range(2):
        await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=i), {student.id: "on-time"})
    # Simulate balance data restored from before these saves
    student.sessions_attended = 10
    student.sessions_remaining = 2
    student.status = "active"
    student.processed_attendance_ids = []
    await db_session.commit()

    balance = await recalculate_student_balance(db_session, student.id, center_class.id)
    assert balance.sessions_attended == 12
    assert balance.status == "fully-consumed"

    again = await recalculate_student_balance(db_session, student.id, center_class.id)
    assert again.sessions_attended == 12


@pytest.mark.asyncio
async def test_recalculate_trusts_live_count(
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student(registered=5, attended=0)
    for i in range(2):
        await _save(db_session, center_class.id, FIRST_DAY + timedelta(days=i), {student.id: "late"})
    student.sessions_attended = 0
    await db_session.commit()

    balance = await recalculate_student_balance(db_session, student.id, center_class.id)
    assert balance.sessions_attended == 2
    assert balance.sessions_remaining == 3


@pytest.mark.asyncio
async def test_unknown_student(db_session: AsyncSession, center_class: CenterClass) -> None:
    with pytest.raises(NotFoundError):
        await recalculate_student_balance(db_session, center_class.id, center_class.id)


@pytest.mark.asyncio
async def test_balance_endpoints(
    client: AsyncClient,
    auth_headers,
    db_session: AsyncSession,
    center_class: CenterClass,
    make_student,
) -> None:
    student = await make_student("An", registered=8, attended=3)
    await _save(db_session, center_class.id, FIRST_DAY, {student.id: "on-time"})

    response = await client.get(f"/api/v1/balances/students/{student.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["full_name"] == "An"
    assert data["sessions_attended"] == 4
    assert data["sessions_remaining"] == 4
    assert data["status"] == "active"

    response = await client.post(
        f"/api/v1/balances/students/{student.id}/recalculate",
        json={"class_id": str(center_class.id)},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["sessions_attended"] == 4

    missing = await client.get(
        "/api/v1/balances/students/00000000-0000-0000-0000-000000000009", headers=auth_headers
    )
    assert missing.status_code == 404
