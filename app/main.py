"""Создаёт FastAPI-приложение, подключает маршруты и модерацию чата."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.core.config import settings
from app.core.logging_config import setup_logging
from app.db.session import init_models
from app.routers.api import router as api_router
from app.routers.web import router as web_router
from app.services.i18n import get_lang, t
from app.services.moderation import HttpModerationClassifier, ModerationPipeline
from app.services.profanity import LexicalFilter, load_blocked_terms

setup_logging(settings.log_level)


def build_moderation_pipeline() -> ModerationPipeline:
    # Словарь загружается один раз при старте и дальше не меняется.
    lexical_filter = LexicalFilter(load_blocked_terms(settings.blocked_terms_file or None))
    classifier = HttpModerationClassifier(
        api_url=settings.moderation_api_url,
        api_key=settings.moderation_api_key,
        model=settings.moderation_model,
        timeout=settings.moderation_timeout_seconds,
    )
    return ModerationPipeline(lexical_filter, classifier)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Локальная sqlite-база создаётся без миграций, Postgres ведёт alembic.
    if settings.database_url.startswith("sqlite"):
        await init_models()
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.state.moderation_pipeline = build_moderation_pipeline()
# Реальный IP за прокси хостинга берём только от доверенных адресов.
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.forwarded_allow_ips)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Ошибки разбора тела запроса отдаём как 400, а не 422.
    lang = get_lang(request.cookies.get("lang"))
    return JSONResponse({"error": t(lang, "error_invalid_body")}, status_code=400)


# Подключаем роуты API и страниц сайта.
app.include_router(api_router)
app.include_router(web_router)
# Подключаем статику (css/js).
app.mount("/static", StaticFiles(directory="app/static"), name="static")

if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.app_host, port=settings.app_port, reload=settings.debug)

