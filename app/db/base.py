"""Регистрирует ORM-модели в метаданных SQLAlchemy."""

from app.models.base import Base
from app.models.chat import ChatMessage
from app.models.page_view import PageView, PageVisitor

__all__ = [
    "Base",
    "ChatMessage",
    "PageView",
    "PageVisitor",
]
