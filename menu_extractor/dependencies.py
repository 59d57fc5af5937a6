import logging
from contextlib import asynccontextmanager
from typing import Annotated, Callable

from fastapi import FastAPI, Depends, Request

from menu_extractor.db.store import MenuStore
from menu_extractor.services.extraction import MenuExtractor
from menu_extractor.services.gemini import GeminiClient
from menu_extractor.settings import Settings

logger = logging.getLogger(__name__)

settings = Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> MenuStore:
    return request.app.state.store


def get_extractor_factory(settings: Settings = Depends(get_settings)) -> Callable[[], MenuExtractor]:
    # The client is built lazily so that a missing API key is reported by the handler
    def factory() -> MenuExtractor:
        return MenuExtractor(GeminiClient.from_settings(settings))
    return factory


SettingsDep = Annotated[Settings, Depends(get_settings)]
StoreDep = Annotated[MenuStore, Depends(get_store)]
ExtractorFactoryDep = Annotated[Callable[[], MenuExtractor], Depends(get_extractor_factory)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings

    # The engine is created on first query, so startup does not need the database
    app.state.store = MenuStore(settings)

    yield # Wait until the app shuts down

    app.state.store.dispose()
    logger.info("Menu store disposed")
