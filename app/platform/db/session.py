from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.platform.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    **_engine_options(settings.DATABASE_URL),
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


def sync_database_url(url: str) -> str:
    """Convert the async driver URL for use by Celery workers and Alembic."""
    return (
        url.replace("postgresql+asyncpg://", "postgresql://")
        .replace("sqlite+aiosqlite://", "sqlite://")
    )


_sync_engine = None
_sync_session_factory = None


def get_sync_db():
    """Get a database session for Celery tasks."""
    global _sync_engine, _sync_session_factory

    if _sync_engine is None:
        db_url = sync_database_url(settings.DATABASE_URL)
        _sync_engine = create_engine(db_url, **_engine_options(db_url))
        _sync_session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_sync_engine)

    return _sync_session_factory()
