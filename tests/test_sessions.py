import uuid
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorcenter.api.v1.sessions import service
from tutorcenter.core.exceptions import ConflictError, NotFoundError
from tutorcenter.core.models import AttendanceSummary, CenterClass, ClassSession


async def _expand(client: AsyncClient, headers, class_id, **extra):
    payload = {"class_id": str(class_id), "from_date": "2024-03-04", "to_date": "2024-03-17"}
    payload.update(extra)
    return await client.post("/api/v1/sessions/expand", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_expand_sessions(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    response = await _expand(client, auth_headers, center_class.id)
    assert response.status_code == 201
    data = response.json()
    assert data["created"] == 6
    assert data["removed"] == 0
    assert data["weekdays"] == [1, 3, 5]
    assert data["weekday_summary"] == "T2, T4, T6"
    assert data["time_window"] == "18:00-19:30"
    assert [s["session_number"] for s in data["sessions"]] == [1, 2, 3, 4, 5, 6]
    assert all(s["status"] == "scheduled" for s in data["sessions"])
    assert data["sessions"][0]["room"] == "P.201"


@pytest.mark.asyncio
async def test_expand_uses_class_defaults(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    response = await client.post(
        "/api/v1/sessions/expand", json={"class_id": str(center_class.id)}, headers=auth_headers
    )
    assert response.status_code == 201
    data = response.json()
    # total_sessions on the class caps the run
    assert data["created"] == 24
    assert data["sessions"][0]["session_date"] == "2024-03-04"


@pytest.mark.asyncio
async def test_expand_twice_requires_replace(
    client: AsyncClient,
    auth_headers,
    center_class: CenterClass,
    db_session: AsyncSession,
) -> None:
    assert (await _expand(client, auth_headers, center_class.id)).status_code == 201
    assert (await _expand(client, auth_headers, center_class.id)).status_code == 409

    response = await _expand(client, auth_headers, center_class.id, to_date="2024-03-10", replace=True)
    assert response.status_code == 201
    assert response.json()["removed"] == 6
    assert response.json()["created"] == 3

    result = await db_session.execute(select(ClassSession).where(ClassSession.class_id == center_class.id))
    assert sorted(s.session_number for s in result.scalars().all()) == [1, 2, 3]


@pytest.mark.asyncio
async def test_expand_unknown_class(client: AsyncClient, auth_headers) -> None:
    response = await _expand(client, auth_headers, "00000000-0000-0000-0000-000000000001")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_sessions_sorted_and_filtered(
    client: AsyncClient,
    auth_headers,
    center_class: CenterClass,
    db_session: AsyncSession,
) -> None:
    await _expand(client, auth_headers, center_class.id)
    # A broken row with a non-positive number never shows up
    db_session.add(
        ClassSession(
            class_id=center_class.id,
            session_number=0,
            session_date=date(2024, 3, 5),
            day_of_week="Thứ 3",
            status="scheduled",
            is_makeup=True,
        )
    )
    await db_session.commit()

    response = await client.get(
        "/api/v1/sessions",
        params={"class_id": str(center_class.id), "from_date": "2024-03-05", "to_date": "2024-03-13"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    dates = [s["session_date"] for s in response.json()]
    assert dates == ["2024-03-06", "2024-03-08", "2024-03-11", "2024-03-13"]

    response = await client.get(
        "/api/v1/sessions",
        params={"class_id": str(center_class.id), "status": "bogus"},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_find_by_date(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    await _expand(client, auth_headers, center_class.id)
    response = await client.get(
        "/api/v1/sessions/by-date",
        params={"class_id": str(center_class.id), "date": "2024-03-08"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["session_number"] == 3

    response = await client.get(
        "/api/v1/sessions/by-date",
        params={"class_id": str(center_class.id), "date": "2024-03-09"},
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_makeup_collides_with_regular_session(
    client: AsyncClient,
    auth_headers,
    center_class: CenterClass,
) -> None:
    await _expand(client, auth_headers, center_class.id)
    response = await client.post(
        "/api/v1/sessions/makeup",
        json={"class_id": str(center_class.id), "date": "2024-03-06"},
        headers=auth_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_makeup_appended_after_max(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    await _expand(client, auth_headers, center_class.id)
    response = await client.post(
        "/api/v1/sessions/makeup",
        json={"class_id": str(center_class.id), "date": "2024-03-09", "time": "09:00-10:30"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["session_number"] == 7
    assert data["status"] == "makeup"
    assert data["is_makeup"] is True
    assert data["time_window"] == "09:00-10:30"
    assert data["day_of_week"] == "Thứ 7"

    response = await client.post(
        "/api/v1/sessions/makeup",
        json={"class_id": str(center_class.id), "date": "2024-03-10"},
        headers=auth_headers,
    )
    assert response.json()["session_number"] == 8


@pytest.mark.asyncio
async def test_makeup_rejects_bad_time(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    response = await client.post(
        "/api/v1/sessions/makeup",
        json={"class_id": str(center_class.id), "date": "2024-03-09", "time": "nine"},
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cancel_session(client: AsyncClient, auth_headers, center_class: CenterClass) -> None:
    data = (await _expand(client, auth_headers, center_class.id)).json()
    session_id = data["sessions"][0]["id"]
    response = await client.post(f"/api/v1/sessions/{session_id}/cancel", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_mark_completed_is_idempotent(db_session: AsyncSession, center_class: CenterClass) -> None:
    await service.expand_sessions(db_session, center_class.id, date(2024, 3, 4), date(2024, 3, 10))
    session = await service.find_session_by_class_and_date(db_session, center_class.id, date(2024, 3, 4))
    summaries = [
        AttendanceSummary(class_id=center_class.id, attendance_date=d, status="taken")
        for d in (date(2024, 3, 4), date(2024, 3, 6))
    ]
    db_session.add_all(summaries)
    await db_session.commit()
    summary_id = summaries[0].id

    first = await service.mark_session_completed(db_session, session.id, summary_id)
    second = await service.mark_session_completed(db_session, session.id, summary_id)
    assert first.status == second.status == "completed"
    assert second.attendance_id == summary_id

    with pytest.raises(ConflictError):
        await service.mark_session_completed(db_session, session.id, summaries[1].id)
    with pytest.raises(NotFoundError):
        await service.mark_session_completed(db_session, uuid.uuid4(), summary_id)


@pytest.mark.asyncio
async def test_requires_token(client: AsyncClient, center_class: CenterClass) -> None:
    response = await client.get("/api/v1/sessions", params={"class_id": str(center_class.id)})
    assert response.status_code == 401
