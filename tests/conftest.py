import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import uuid
from datetime import date
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tutorcenter.auth.security import create_access_token
from tutorcenter.core.models import CenterClass, Student
from tutorcenter.db.session import Base, get_db
from tutorcenter.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the FastAPI dependency shares this session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> Dict[str, str]:
    token = create_access_token(uuid.uuid4(), "TEACHER", name="Ms. Lan")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def center_class(db_session: AsyncSession) -> CenterClass:
    """Mon/Wed/Fri evening class starting Monday 2024-03-04."""
    cl = CenterClass(
        name="Math 9A",
        schedule="Thứ 2, 4, 6 (18h-19h30)",
        room="P.201",
        teacher_name="Ms. Lan",
        total_sessions=24,
        start_date=date(2024, 3, 4),
        is_active=True,
    )
    db_session.add(cl)
    await db_session.commit()
    await db_session.refresh(cl)
    return cl


@pytest.fixture()
def make_student(db_session: AsyncSession, center_class: CenterClass):
    async def _make(
        name: str = "Nguyen Van A",
        registered: int = 20,
        attended: int = 0,
        status: str = "active",
    ) -> Student:
        s = Student(
            full_name=name,
            class_id=center_class.id,
            status=status,
            sessions_registered=registered,
            sessions_attended=attended,
            sessions_remaining=registered - attended,
            processed_attendance_ids=[],
        )
        db_session.add(s)
        await db_session.commit()
        await db_session.refresh(s)
        return s

    return _make
