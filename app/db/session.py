"""Создаёт async engine и фабрику сессий SQLAlchemy."""

from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.db.base import Base


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """Отдаёт управление транзакциями SQLAlchemy, чтобы SAVEPOINT в sqlite работал корректно.

    Драйвер sqlite сам решает, когда слать BEGIN, и ломает вложенные транзакции.
    Для остальных диалектов ничего не меняется.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine = enable_sqlite_savepoints(create_async_engine(settings.database_url, pool_pre_ping=True))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    # Выдаём сессию на время одного запроса.
    async with SessionLocal() as session:
        yield session


async def init_models() -> None:
    # Создаём таблицы без alembic (локальная sqlite-база и тесты).
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
