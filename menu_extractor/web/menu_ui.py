from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from menu_extractor.dependencies import StoreDep
from menu_extractor.web.menu_api import load_menu

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def format_options(options) -> str:
    if not options:
        return ""
    parts = []
    for option in options:
        if option.price is None:
            parts.append(option.label)
        else:
            parts.append(f"{option.label}: {option.price}")
    return ", ".join(parts)


templates.env.filters["options"] = format_options


@router.get("/", response_class=HTMLResponse)
async def index_page(request: Request):
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/menus/{menu_id}", response_class=HTMLResponse)
def menu_page(request: Request, menu_id: str, store: StoreDep):
    menu = load_menu(store, menu_id)
    return templates.TemplateResponse(request, "menu_detail.html", {"menu": menu})


@router.get("/api/menu", response_class=HTMLResponse, include_in_schema=False)
def menu_page_by_query(request: Request, store: StoreDep, id: str | None = None):
    menu = load_menu(store, id)
    return templates.TemplateResponse(request, "menu_detail.html", {"menu": menu})
