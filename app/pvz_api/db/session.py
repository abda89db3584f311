from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.pvz_api.settings import Settings


def is_memory_sqlite(url: str) -> bool:
    if not url.startswith("sqlite"):
        return False
    return ":memory:" in url or "mode=memory" in url or url.rstrip("/").endswith(":")


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Создаёт асинхронный движок БД по настройкам.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        if is_memory_sqlite(url):
            # in-memory SQLite живёт ровно столько, сколько одно соединение
            return create_async_engine(
                url,
                echo=settings.DB_ECHO,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_async_engine(url, echo=settings.DB_ECHO)
    return create_async_engine(
        url,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        pool_pre_ping=True,
        connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Возвращает асинхронную сессию БД с автокоммитом/ролбэком.

    Откат выполняется при любом исключении, в том числе при отмене задачи.
    """
    session = session_factory()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()
