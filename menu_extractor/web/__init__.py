"""
Main FastAPI application module.

Creates the app, registers the API and UI routers and maps application
errors that escape a handler to JSON responses.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from menu_extractor.dependencies import lifespan
from menu_extractor.errors import ConfigurationError

# API routers
from .menu_api import router as menu_api_router

# UI routers
from .menu_ui import router as menu_ui_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Menu Extractor", lifespan=lifespan)

app.include_router(menu_api_router)
app.include_router(menu_ui_router)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health")
async def health():
    """Liveness check for the service."""
    return {"message": "Menu Extractor API", "status": "running"}
