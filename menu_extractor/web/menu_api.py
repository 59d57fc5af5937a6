import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from menu_extractor.db.menu import MAX_MENU_ID
from menu_extractor.dependencies import ExtractorFactoryDep, SettingsDep, StoreDep
from menu_extractor.errors import (
    CompletionServiceError,
    ConfigurationError,
    EmptyResponseError,
    InvalidModelJSONError,
    MenuValidationError,
)
from menu_extractor.schemas.menu import StoredMenu

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def parse_menu_id(raw: str | None) -> int:
    try:
        menu_id = int(raw) if raw is not None else 0
    except (TypeError, ValueError):
        menu_id = 0
    if not 0 < menu_id <= MAX_MENU_ID:
        raise HTTPException(status_code=400, detail="Missing id")
    return menu_id


# Upload -> extract -> validate -> persist
@router.post("/extract")
@router.post("/api/process", include_in_schema=False)
async def extract_menu(
    store: StoreDep,
    extractor_factory: ExtractorFactoryDep,
    file: UploadFile | None = File(None),
):
    if file is None:
        return _error(400, "Missing file")

    content = await file.read()
    text = content.decode("utf-8", errors="replace")
    if not text.strip():
        return _error(400, "Uploaded file is empty")

    try:
        extractor = extractor_factory()
        menu = await extractor.extract(text)
    except ConfigurationError as e:
        logger.error(f"Extraction is not configured: {e}")
        return _error(500, str(e))
    except MenuValidationError as e:
        return _error(422, "Validation failed", issues=[issue.as_dict() for issue in e.issues], raw=e.raw)
    except (EmptyResponseError, InvalidModelJSONError) as e:
        logger.warning(f"Unusable model output for {file.filename!r}: {e}")
        return _error(502, str(e))
    except CompletionServiceError as e:
        logger.error(f"Completion service failed for {file.filename!r}: {e}")
        return _error(502, f"Completion service error: {e}")
    except Exception:
        logger.exception(f"Unexpected error while extracting {file.filename!r}")
        return _error(500, "Server error")

    # The menu is valid from here on; a failure below means "extracted but not stored"
    menu_payload = menu.model_dump(exclude_none=True)
    try:
        await run_in_threadpool(store.ensure_schema)
        menu_id = await run_in_threadpool(store.insert_menu, menu)
    except Exception:
        logger.exception("Menu was extracted but could not be stored")
        return _error(500, "Menu was extracted but could not be stored", stage="persist", menu=menu_payload)

    return {"ok": True, "id": menu_id, "menu": menu_payload}


@router.get("/menus")
@router.get("/api/list", include_in_schema=False)
def list_menus(store: StoreDep, settings: SettingsDep):
    try:
        store.ensure_schema()
        menus = store.list_menus(settings.menu_list_limit)
    except Exception:
        logger.exception("Failed to list menus")
        return _error(500, "failed")
    return {"menus": [menu.model_dump(mode="json") for menu in menus]}


def load_menu(store, raw_id: str | None) -> StoredMenu:
    """Shared by the JSON and HTML detail endpoints."""
    menu_id = parse_menu_id(raw_id)
    try:
        store.ensure_schema()
        menu = store.get_menu(menu_id)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.exception(f"Failed to load menu {menu_id}")
        raise HTTPException(status_code=500, detail="failed") from e
    if menu is None:
        raise HTTPException(status_code=404, detail="Not found")
    return menu


@router.get("/api/menus/{menu_id}")
def get_menu_json(menu_id: str, store: StoreDep):
    menu = load_menu(store, menu_id)
    return menu.model_dump(mode="json", exclude_none=True)
