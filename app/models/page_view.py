from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utcnow


class PageView(Base):
    __tablename__ = "page_views"

    page: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Уникальные посетители страницы.
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Все заходы, включая повторные.
    hits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PageVisitor(Base):
    __tablename__ = "page_visitors"

    page: Mapped[str] = mapped_column(String(255), primary_key=True)
    ip_address: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_seen_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
