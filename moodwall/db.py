from __future__ import annotations

from pathlib import Path

from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from moodwall.app.db.models import Base, Emotion

DEFAULT_SQLITE_URL = "sqlite:///./data/moodwall.db"

DEFAULT_EMOTIONS: tuple[tuple[str, str], ...] = (
    ("Happy", "😊"),
    ("Excited", "🤩"),
    ("Calm", "😌"),
    ("Grateful", "🙏"),
    ("Tired", "😪"),
    ("Anxious", "😰"),
    ("Sad", "😢"),
    ("Angry", "😠"),
    ("Lonely", "🥺"),
    ("Stressed", "😫"),
)


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(
        dbapi_connection,
        connection_record,
    ) -> None:  # pragma: no cover - event hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _ensure_sqlite_path(url: str) -> None:
    if "///" not in url:
        return
    path_part = url.split("///", maxsplit=1)[-1]
    if path_part in {"", ":memory:"}:
        return
    Path(path_part).parent.mkdir(parents=True, exist_ok=True)


def normalize_database_url(raw_url: str | None) -> str:
    if not raw_url:
        raw_url = DEFAULT_SQLITE_URL

    url = str(raw_url)
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://") and "+aiosqlite" not in url:
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    if url.startswith("sqlite+aiosqlite:///"):
        _ensure_sqlite_path(url)

    return url


def create_engine(database_url: str | None) -> AsyncEngine:
    normalized = normalize_database_url(database_url)
    engine = create_async_engine(normalized, future=True, echo=False)
    if normalized.startswith("sqlite"):
        _enable_sqlite_foreign_keys(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def seed_emotion_catalog(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Insert the default catalog when the emotions table is empty."""

    async with session_factory() as session:
        existing = await session.scalar(select(func.count(Emotion.emotion_id)))
        if existing:
            return 0
        session.add_all(Emotion(name=name, icon=icon) for name, icon in DEFAULT_EMOTIONS)
        await session.commit()
    return len(DEFAULT_EMOTIONS)


async def init_db(
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    seed: bool = True,
) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed:
        await seed_emotion_catalog(session_factory)


__all__ = [
    "DEFAULT_EMOTIONS",
    "create_engine",
    "create_session_factory",
    "init_db",
    "normalize_database_url",
    "seed_emotion_catalog",
]
