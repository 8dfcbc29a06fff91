import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.request_ip import get_client_ip
from app.db.session import get_db
from app.services.chat import (
    ChatBlockedError,
    ChatRateLimitedError,
    ChatValidationError,
    count_recent_messages,
    list_recent_messages,
    remaining_quota,
    submit_chat,
)
from app.services.i18n import get_lang, t
from app.services.moderation import ModerationPipeline
from app.services.visits import list_page_views, list_unique_visitors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class ChatCreate(BaseModel):
    # Типы не ограничиваем: нестроковые значения превращает в пустую строку санитайзер.
    message: Any = None
    user_id: Any = None


def get_moderation_pipeline(request: Request) -> ModerationPipeline:
    return request.app.state.moderation_pipeline


def error_response(request: Request, key: str, status_code: int, **extra) -> JSONResponse:
    lang = get_lang(request.cookies.get("lang"))
    return JSONResponse({"error": t(lang, key), **extra}, status_code=status_code)


@router.get("/chats")
async def get_chats(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        rows = await list_recent_messages(db)
    except SQLAlchemyError:
        logger.exception("Failed to load chat messages")
        return error_response(request, "error_server", 500)
    return [
        {
            "id": row.id,
            "message": row.message,
            "user_id": row.user_id,
            "created_at": row.created_at.isoformat(),
        }
        for row in rows
    ]


@router.post("/chats")
async def post_chat(
    request: Request,
    payload: ChatCreate,
    db: AsyncSession = Depends(get_db),
    pipeline: ModerationPipeline = Depends(get_moderation_pipeline),
):
    ip = get_client_ip(request)
    try:
        submission = await submit_chat(db, pipeline, payload.message, payload.user_id, ip)
    except ChatValidationError as exc:
        return error_response(request, f"error_invalid_{exc.field}", 400)
    except ChatRateLimitedError as exc:
        response = error_response(request, "error_rate_limited", 429, remaining=0, retry_after=exc.retry_after)
        response.headers["Retry-After"] = str(exc.retry_after)
        return response
    except ChatBlockedError as exc:
        verdict = exc.verdict
        return error_response(
            request,
            "error_blocked",
            403,
            reason=verdict.reason,
            severity=verdict.severity,
            method=verdict.method,
            detected=verdict.detected,
        )
    except SQLAlchemyError:
        logger.exception("Failed to store chat message from ip=%s", ip)
        return error_response(request, "error_server", 500)

    return JSONResponse(
        {"id": submission.id, "message": submission.message, "remaining": submission.remaining},
        status_code=201,
    )


@router.get("/page-views")
async def get_page_views(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        rows = await list_page_views(db)
    except SQLAlchemyError:
        logger.exception("Failed to load page views")
        return error_response(request, "error_server", 500)
    return [{"page": row.page, "total": row.total, "hits": row.hits} for row in rows]


@router.get("/unique-visitors")
async def get_unique_visitors(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        rows = await list_unique_visitors(db)
    except SQLAlchemyError:
        logger.exception("Failed to load unique visitors")
        return error_response(request, "error_server", 500)
    return [{"page": page, "unique_visitors": count} for page, count in rows]


@router.get("/client-info")
async def get_client_info(request: Request, db: AsyncSession = Depends(get_db)):
    ip = get_client_ip(request)
    try:
        chat_count = await count_recent_messages(db, ip)
    except SQLAlchemyError:
        logger.exception("Failed to count chat messages for ip=%s", ip)
        return error_response(request, "error_server", 500)
    return {"ip": ip, "chatCount": chat_count, "remaining": remaining_quota(chat_count)}
