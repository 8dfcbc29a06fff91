"""Определяет базовый класс ORM-моделей и общие миксины."""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    # Храним naive UTC, как и колонки DateTime без timezone.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    # Базовый класс для всех ORM моделей.
    pass
