import asyncio
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Добавляем корень проекта в sys.path для корректного импорта app.
sys.path.append(str(Path(__file__).resolve().parents[1]))
# Задаем обязательные переменные окружения для инициализации настроек.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
# Внешний классификатор в тестах всегда отключен.
os.environ["MODERATION_API_KEY"] = ""
# Доверяем X-Forwarded-For только от локального прокси.
os.environ["FORWARDED_ALLOW_IPS"] = "127.0.0.1"

from app.db.base import Base  # noqa: E402
from app.db.session import enable_sqlite_savepoints  # noqa: E402
from app.services.moderation import ClassifierVerdict  # noqa: E402


class StubClassifier:
    """Детерминированный классификатор: помечает текст со словами из flagged."""

    def __init__(self, flagged: set[str] | None = None, severity: str = "medium") -> None:
        self.flagged = flagged or set()
        self.severity = severity
        self.calls: list[str] = []

    async def classify(self, text: str) -> ClassifierVerdict:
        self.calls.append(text)
        hits = [word for word in self.flagged if word in text.lower()]
        if hits:
            return ClassifierVerdict(is_profane=True, severity=self.severity, reason="Insult detected", detected=hits)
        return ClassifierVerdict(is_profane=False)


@pytest.fixture
def session_factory(tmp_path: Path):
    # Отдельная файловая sqlite-база на тест; NullPool, чтобы соединения не переживали event loop.
    engine = enable_sqlite_savepoints(
        create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    )

    async def create_schema() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())
