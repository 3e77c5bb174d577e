from __future__ import annotations
from pathlib import Path
from typing import Any
from urllib.parse import quote
from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from draftcode.config import settings
from draftcode.schemas.session import SessionUser

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

FIGMA_EMBED_URL = "https://www.figma.com/embed?embed_host=astra&url={url}"

SITE_METADATA: dict[str, Any] = {
    "title": settings.app_display_name,
    "creator": "Matheus Pergoli",
    "description": "DraftCode é uma plataforma de desafios de programação.",
    "keywords": [
        "DraftCode", "Desafios", "Programação", "Next.js", "React",
        "Tailwind CSS", "Server Components", "Vercel",
    ],
    "authors": [
        {"name": "Matheus Pergoli", "url": "https://matheuspergoli-portfolio.vercel.app/"},
        {"name": "Natan Castro", "url": "https://github.com/NatanCastro"},
    ],
    "icon": "/favicon.ico",
}


def figma_embed_url(figma_url: str | None) -> str | None:
    if not figma_url:
        return None
    return FIGMA_EMBED_URL.format(url=quote(figma_url, safe=""))

templates.env.filters["figma_embed"] = figma_embed_url


def render_page(
    request: Request,
    name: str,
    *,
    user: SessionUser | None,
    status_code: int = 200,
    **context: Any,
) -> HTMLResponse:
    """Render a page inside the site layout; the session user is handed to the header explicitly."""
    context.setdefault("notification", None)
    return templates.TemplateResponse(
        request,
        name,
        {"user": user, "site": SITE_METADATA, **context},
        status_code=status_code,
    )
