from typing import Any, Dict

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from tutorcenter.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool options per backend. SQLite (local runs) has no server to drop idle connections."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # pool_pre_ping: check the connection is alive before use.
    # pool_recycle: discard connections older than this many seconds.
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Stable constraint names so unique violations can be told apart in logs
Base = declarative_base(
    metadata=MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )
)


async def get_db() -> AsyncSession:
    """One session per request. Services commit their own units of work."""
    async with AsyncSessionLocal() as session:
        yield session
