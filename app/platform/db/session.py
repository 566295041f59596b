from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from app.platform.config import settings
from app.platform.db.base import Base


def build_engine(database_url: str = settings.DATABASE_URL) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        # SQLite ignores pool sizing and is used for local runs and tests
        return create_async_engine(database_url, echo=False, future=True)

    return create_async_engine(
        database_url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=10,
        max_overflow=10,
        pool_timeout=30,
    )


engine = build_engine()
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create any missing tables. Deployed databases are migrated with Alembic instead."""
    from app.features.scan.models.scan_session import ScanSession  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
