from contextlib import asynccontextmanager
from datetime import datetime
from http import HTTPStatus
import pathlib
from typing import Any, Dict, Union
from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from core.config import DATABASE_URL, TEMPLATE_DIR, TIMEZONE
from core.db import Database
from core.exceptions import BadRequestError, WikiError, handle_exception
from core.logger import logging
from model.page import EMPTY_PAGE_MARKDOWN
from wiki.services.page import PageRepository
from wiki.services.render import TemplateRenderer, render_markdown
from wiki.views import IndexView, PageView

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Z %Y"

router = APIRouter()


def create_app(
    database_url: str = DATABASE_URL,
    template_dir: Union[str, pathlib.Path] = TEMPLATE_DIR,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Schema first; the server only binds once this has succeeded
        db = Database(database_url)
        pages = PageRepository(db)
        try:
            await pages.ensure_schema()
        except Exception as e:
            handle_exception(e, "Database preparation error", source="startup")
            await db.dispose()
            raise

        app.state.db = db
        app.state.pages = pages
        app.state.templates = TemplateRenderer(template_dir)

        yield  # Application runs here until shutdown

        await db.dispose()

    app = FastAPI(lifespan=lifespan, openapi_url=None)
    app.include_router(router)
    app.add_exception_handler(WikiError, wiki_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    return app


def get_pages(request: Request) -> PageRepository:
    return request.app.state.pages


def get_templates(request: Request) -> TemplateRenderer:
    return request.app.state.templates


async def parse_body(request: Request) -> Dict[str, Any]:
    """Parse a form or JSON request body into a dict"""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
        elif content_type.startswith(
            ("application/x-www-form-urlencoded", "multipart/form-data")
        ):
            body = dict(await request.form())
        else:
            raise BadRequestError(f"Unsupported content type: {content_type!r}")
    except (ValueError, MultiPartException, StarletteHTTPException) as e:
        raise BadRequestError("Malformed request body") from e

    if not isinstance(body, dict):
        raise BadRequestError("Request body must be an object")
    return body


def text_field(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str):
        raise BadRequestError(f"Field {key!r} is required")
    return value


def int_field(body: Dict[str, Any], key: str) -> int:
    value = body.get(key)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise BadRequestError(f"Field {key!r} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(f"Field {key!r} must be an integer")


def page_url(name: str) -> str:
    return f"/wiki/{quote(name, safe='/')}"


def error_page(status_code: int) -> HTMLResponse:
    """Generic error body; internal details stay in the log"""
    phrase = HTTPStatus(status_code).phrase
    return HTMLResponse(
        content=f"<h1>{status_code} {phrase}</h1>", status_code=status_code
    )


async def wiki_error_handler(request: Request, exc: WikiError) -> HTMLResponse:
    if exc.status_code >= 500:
        handle_exception(exc, f"{request.method} {request.url.path} failed", source="web")
    else:
        logging.warning(f"{request.method} {request.url.path}: {exc}")
    return error_page(exc.status_code)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> HTMLResponse:
    logging.warning(f"{request.method} {request.url.path}: {exc.errors()}")
    return error_page(400)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> HTMLResponse:
    logging.warning(f"{request.method} {request.url.path}: {exc.status_code}")
    response = error_page(exc.status_code)
    response.headers.update(exc.headers or {})
    return response


async def unexpected_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    handle_exception(exc, f"{request.method} {request.url.path} failed", source="web")
    return error_page(500)


@router.get("/", response_class=HTMLResponse)
async def index(
    pages: PageRepository = Depends(get_pages),
    templates: TemplateRenderer = Depends(get_templates),
):
    """List all pages"""
    names = sorted(await pages.list_names())
    content = await templates.render("index.html", IndexView(title="Wiki home", pages=names))
    return HTMLResponse(content=content)


@router.get("/wiki/{page:path}", response_class=HTMLResponse)
async def render_page(
    page: str,
    pages: PageRepository = Depends(get_pages),
    templates: TemplateRenderer = Depends(get_templates),
):
    """Render a page, or its seed markdown if it does not exist yet"""
    record = await pages.fetch_or_seed(page)
    view = PageView(
        title=page,
        id=record.id,
        raw_content=record.content,
        content=render_markdown(record.content),
        timestamp=datetime.now(TIMEZONE).strftime(TIMESTAMP_FORMAT),
        new_page=record.is_new,
    )
    content = await templates.render("page.html", view)
    return HTMLResponse(content=content)


@router.post("/save")
async def save_page(
    body: Dict[str, Any] = Depends(parse_body),
    pages: PageRepository = Depends(get_pages),
):
    name = await pages.save(int_field(body, "id"), text_field(body, "content"))
    return RedirectResponse(url=page_url(name), status_code=303)


@router.post("/create")
async def create_page(
    body: Dict[str, Any] = Depends(parse_body),
    pages: PageRepository = Depends(get_pages),
):
    name = text_field(body, "name").strip()
    if not name:
        return RedirectResponse(url="/", status_code=303)

    await pages.create(name, EMPTY_PAGE_MARKDOWN)
    return RedirectResponse(url=page_url(name), status_code=303)


@router.post("/delete")
async def delete_page(
    body: Dict[str, Any] = Depends(parse_body),
    pages: PageRepository = Depends(get_pages),
):
    await pages.delete(int_field(body, "id"))
    return RedirectResponse(url="/", status_code=303)


app = create_app()
