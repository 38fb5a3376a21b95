"""
Save store for Forge Tycoon.

Save slots live in a single table behind an async SQLAlchemy engine. The
module-level engine serves the running app; tests build their own with
create_save_engine so each one gets an isolated file.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from forge_tycoon.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the save slot table."""
    pass


def create_save_engine(database_url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """Build an async engine for the save store."""
    if database_url.startswith("sqlite"):
        # aiosqlite hands the connection to a worker thread
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_async_engine(database_url, echo=echo, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine) -> None:
    from forge_tycoon.models import save_slot  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


settings = get_settings()
engine = create_save_engine(settings.database_url, echo=settings.debug_mode)
async_session_factory = create_session_factory(engine)


async def init_db() -> None:
    await create_tables(engine)


async def close_db() -> None:
    await engine.dispose()
