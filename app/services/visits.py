"""Учёт просмотров страниц: уникальные посетители по IP и общее число заходов."""

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.page_view import PageView, PageVisitor

logger = logging.getLogger(__name__)

ARTICLE_DETAIL_RE = re.compile(r"^/articles/[^/]+$")
ARTICLE_DETAIL_KEY = "/articles/:slug"


@dataclass(frozen=True)
class TrackingResult:
    ok: bool
    # True, если адрес впервые засчитан для этой страницы.
    counted: bool = False
    error: str | None = None


def normalize_page_key(path: str) -> str:
    # Сводим путь к каноническому ключу счётчика.
    key = urlsplit(path or "/").path.lower().rstrip("/") or "/"
    if key in {"/index", "/index.html"}:
        return "/"
    if key.endswith(".html"):
        key = key[: -len(".html")]
    if ARTICLE_DETAIL_RE.match(key):
        return ARTICLE_DETAIL_KEY
    return key


def _insert_for(db: AsyncSession):
    # INSERT ... ON CONFLICT есть в обоих поддерживаемых диалектах.
    if db.bind.dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


async def record_visit(db: AsyncSession, page_key: str, source_address: str) -> TrackingResult:
    """Засчитывает визит адреса на страницу.

    Строка в page_visitors вставляется не более одного раза на пару (страница, IP),
    total растёт только при первой вставке, hits растёт при каждом визите.
    Ошибки хранилища не пробрасываются: трекинг не должен ломать отдачу страницы.
    """
    page = normalize_page_key(page_key)
    insert = _insert_for(db)
    try:
        ledger = await db.execute(
            insert(PageVisitor)
            .values(page=page, ip_address=source_address)
            .on_conflict_do_nothing(index_elements=[PageVisitor.page, PageVisitor.ip_address])
        )
        is_new = ledger.rowcount == 1

        upsert = insert(PageView).values(page=page, total=1 if is_new else 0, hits=1)
        await db.execute(
            upsert.on_conflict_do_update(
                index_elements=[PageView.page],
                set_={
                    "total": PageView.total + upsert.excluded.total,
                    "hits": PageView.hits + 1,
                },
            )
        )
        await db.commit()
    except (SQLAlchemyError, OSError) as exc:
        # asyncpg отдаёт ошибки соединения как OSError без обёртки SQLAlchemy.
        try:
            await db.rollback()
        except (SQLAlchemyError, OSError):
            logger.debug("Rollback after failed visit tracking also failed", exc_info=True)
        logger.warning("Visit tracking failed for page=%s ip=%s", page, source_address, exc_info=True)
        return TrackingResult(ok=False, error=str(exc))

    return TrackingResult(ok=True, counted=is_new)


async def list_page_views(db: AsyncSession) -> list[PageView]:
    return list((await db.scalars(select(PageView).order_by(PageView.page))).all())


async def list_unique_visitors(db: AsyncSession) -> list[tuple[str, int]]:
    rows = await db.execute(
        select(PageVisitor.page, func.count(PageVisitor.ip_address))
        .group_by(PageVisitor.page)
        .order_by(PageVisitor.page)
    )
    return [(page, count) for page, count in rows.all()]
