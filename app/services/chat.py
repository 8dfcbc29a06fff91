"""Публичный чат: лимит сообщений по IP, модерация и хранение."""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import desc, func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.base import utcnow
from app.models.chat import ChatMessage
from app.services.moderation import ModerationPipeline, ModerationVerdict
from app.services.sanitizer import sanitize_text

logger = logging.getLogger(__name__)

CHAT_ID_ALPHABET = string.ascii_letters + string.digits
CHAT_ID_LENGTH = 8
CHAT_ID_ATTEMPTS = 5


class ChatError(Exception):
    pass


class ChatValidationError(ChatError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Invalid {field}")
        self.field = field


class ChatRateLimitedError(ChatError):
    def __init__(self, count: int, retry_after: int) -> None:
        super().__init__("Chat rate limit exceeded")
        self.count = count
        self.retry_after = retry_after


class ChatBlockedError(ChatError):
    def __init__(self, verdict: ModerationVerdict) -> None:
        super().__init__(verdict.reason)
        self.verdict = verdict


@dataclass(frozen=True)
class ChatSubmission:
    id: str
    message: str
    remaining: int


def window_start(now: datetime) -> datetime:
    return now - timedelta(hours=settings.chat_window_hours)


def remaining_quota(count: int) -> int:
    return max(settings.chat_max_messages - count, 0)


def generate_chat_id(length: int = CHAT_ID_LENGTH) -> str:
    return "".join(secrets.choice(CHAT_ID_ALPHABET) for _ in range(length))


async def count_recent_messages(db: AsyncSession, ip: str, now: datetime | None = None) -> int:
    # Скользящее окно считается по created_at сообщений, а не по календарным суткам.
    since = window_start(now or utcnow())
    count = await db.scalar(
        select(func.count(ChatMessage.id)).where(ChatMessage.ip_address == ip, ChatMessage.created_at >= since)
    )
    return int(count or 0)


async def retry_after_seconds(db: AsyncSession, ip: str, now: datetime | None = None) -> int:
    # Через сколько секунд самое старое сообщение в окне перестанет учитываться.
    now = now or utcnow()
    oldest = await db.scalar(
        select(func.min(ChatMessage.created_at)).where(
            ChatMessage.ip_address == ip, ChatMessage.created_at >= window_start(now)
        )
    )
    if oldest is None:
        return 0
    delta = oldest + timedelta(hours=settings.chat_window_hours) - now
    return max(int(delta.total_seconds()) + 1, 1)


async def _lock_address(db: AsyncSession, ip: str) -> None:
    # Сериализуем проверку лимита и вставку для одного IP до конца транзакции.
    # SQLite и так допускает только одного писателя.
    if db.bind.dialect.name == "postgresql":
        await db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": f"chat:{ip}"})


async def append_message(db: AsyncSession, message: str, user_id: str, ip: str) -> ChatMessage:
    # Коллизия короткого id маловероятна, но при ней генерируем новый.
    for attempt in range(1, CHAT_ID_ATTEMPTS + 1):
        row = ChatMessage(id=generate_chat_id(), message=message, user_id=user_id, ip_address=ip, created_at=utcnow())
        try:
            async with db.begin_nested():
                db.add(row)
        except IntegrityError:
            logger.warning("Chat id collision for %s on attempt %s, regenerating", row.id, attempt)
            continue
        return row
    raise RuntimeError("Could not allocate a unique chat id")


async def list_recent_messages(db: AsyncSession, limit: int | None = None) -> list[ChatMessage]:
    # Берём последние сообщения и отдаём их от старых к новым.
    limit = min(limit or settings.chat_page_size, settings.chat_page_size)
    rows = (await db.scalars(select(ChatMessage).order_by(desc(ChatMessage.created_at)).limit(limit))).all()
    return list(reversed(rows))


async def submit_chat(
    db: AsyncSession,
    pipeline: ModerationPipeline,
    raw_message: object,
    raw_user_id: object,
    ip: str,
) -> ChatSubmission:
    """Принимает сообщение чата: санитайзер, лимит по IP, модерация, сохранение.

    Лимит проверяется до модерации, чтобы не тратить вызовы классификатора на
    заведомо отклонённые запросы, и повторно под блокировкой адреса перед вставкой.
    """
    message = sanitize_text(raw_message, settings.chat_message_max_length)
    if not message:
        raise ChatValidationError("message")
    user_id = sanitize_text(raw_user_id, settings.chat_user_id_max_length)
    if not user_id:
        raise ChatValidationError("user_id")

    count = await count_recent_messages(db, ip)
    if count >= settings.chat_max_messages:
        retry_after = await retry_after_seconds(db, ip)
        await db.rollback()
        logger.info("Chat rate limit hit for ip=%s (%s messages)", ip, count)
        raise ChatRateLimitedError(count, retry_after)
    # Не держим транзакцию открытой на время сетевого вызова.
    await db.rollback()

    verdict = await pipeline.moderate(message)
    if not verdict.allowed:
        logger.info("Chat message blocked for ip=%s method=%s severity=%s", ip, verdict.method, verdict.severity)
        raise ChatBlockedError(verdict)

    try:
        await _lock_address(db, ip)
        count = await count_recent_messages(db, ip)
        if count >= settings.chat_max_messages:
            retry_after = await retry_after_seconds(db, ip)
            await db.rollback()
            logger.info("Chat rate limit hit for ip=%s after moderation (%s messages)", ip, count)
            raise ChatRateLimitedError(count, retry_after)
        row = await append_message(db, message, user_id, ip)
        await db.commit()
    except ChatError:
        raise
    except Exception:
        await db.rollback()
        raise

    return ChatSubmission(id=row.id, message=row.message, remaining=remaining_quota(count + 1))
