"""Asset record database: engine, sessions and schema setup."""
from collections.abc import AsyncGenerator
from pathlib import Path
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from webstrate_assets.config import get_settings
from webstrate_assets.utils.logging import logger

settings = get_settings()

BACKEND_DIR = Path(__file__).resolve().parent.parent

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base of the asset tables."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, committed when the request succeeds."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _upgrade_schema() -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(cfg, "head")


async def init_db() -> None:
    """
    Bring the `assets` schema up to date.

    Migrations run in a worker thread because alembic's env.py starts its own
    event loop. When they cannot run, the tables are created from the models,
    which only suits an empty database.
    """
    try:
        await asyncio.to_thread(_upgrade_schema)
    except Exception:
        logger.exception("Alembic upgrade failed, falling back to create_all")
        import webstrate_assets.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
