from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.request_ip import get_client_ip
from app.db.session import get_db
from app.services.i18n import get_lang, t
from app.services.visits import normalize_page_key, record_visit

router = APIRouter()
templates = Jinja2Templates(directory="app/templates")


def template_context(request: Request, **extra):
    lang = get_lang(request.cookies.get("lang"))
    context = {"request": request, "lang": lang, "tr": lambda key: t(lang, key)}
    context.update(extra)
    return context


async def track_page(request: Request, db: AsyncSession) -> str:
    # Трекинг best-effort: результат только логируется внутри record_visit.
    page_key = normalize_page_key(request.url.path)
    await record_visit(db, page_key, get_client_ip(request))
    return page_key


@router.get("/set-lang/{lang}")
async def set_lang(lang: str):
    # Сохраняем выбранный язык в cookie.
    response = RedirectResponse(url="/", status_code=302)
    response.set_cookie("lang", "en" if lang == "en" else "id", max_age=60 * 60 * 24 * 365)
    return response


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, db: AsyncSession = Depends(get_db)):
    # Главная страница с чатом; сообщения подгружает клиент через /api/chats.
    page_key = await track_page(request, db)
    return templates.TemplateResponse(request, "index.html", template_context(request, page_key=page_key))


@router.get("/about", response_class=HTMLResponse)
async def about(request: Request, db: AsyncSession = Depends(get_db)):
    page_key = await track_page(request, db)
    return templates.TemplateResponse(request, "about.html", template_context(request, page_key=page_key))


@router.get("/contact", response_class=HTMLResponse)
async def contact(request: Request, db: AsyncSession = Depends(get_db)):
    page_key = await track_page(request, db)
    return templates.TemplateResponse(request, "contact.html", template_context(request, page_key=page_key))


@router.get("/articles", response_class=HTMLResponse)
async def articles(request: Request, db: AsyncSession = Depends(get_db)):
    page_key = await track_page(request, db)
    return templates.TemplateResponse(request, "articles.html", template_context(request, page_key=page_key))


@router.get("/articles/{slug}", response_class=HTMLResponse)
async def article_detail(slug: str, request: Request, db: AsyncSession = Depends(get_db)):
    # Все статьи делят один счётчик /articles/:slug.
    page_key = await track_page(request, db)
    return templates.TemplateResponse(
        request, "article.html", template_context(request, page_key=page_key, slug=slug)
    )
