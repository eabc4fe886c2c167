from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dashboard.config import settings


class Base(DeclarativeBase):
    pass


def enable_sqlite_foreign_keys(async_engine) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE applies on SQLite."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    is_sqlite = database_url.startswith("sqlite")
    engine_kwargs = {"echo": echo}

    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_recycle"] = 3600

    new_engine = create_async_engine(database_url, **engine_kwargs)
    if is_sqlite:
        enable_sqlite_foreign_keys(new_engine)
    return new_engine


# Rebound by configure_engine() when the app is built with other settings
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def configure_engine(database_url: str, echo: bool = False) -> None:
    """Point the module engine and session factory at ``database_url``."""
    global engine, async_session

    if engine.url.render_as_string(hide_password=False) == database_url and engine.sync_engine.echo == echo:
        return

    await engine.dispose()
    engine = build_engine(database_url, echo=echo)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return
    if not url.database or url.database == ":memory:":
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


async def init_db() -> None:
    """Create tables that don't exist yet on the configured engine."""
    # Model modules must be imported so their tables are registered on Base
    from dashboard import models  # noqa: F401

    ensure_sqlite_directory(engine.url.render_as_string(hide_password=False))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
