import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine
from sqlmodel.pool import StaticPool

from menu_extractor.db.store import MenuStore
from menu_extractor.dependencies import get_extractor_factory
from menu_extractor.errors import RateLimitError
from menu_extractor.services.extraction import MenuExtractor
from menu_extractor.settings import Settings
from menu_extractor.web import app


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": None,
        "pghost": None,
        "pguser": None,
        "pgpassword": None,
        "pgdatabase": None,
        "pgport": None,
        "db_ssl": None,
        "gemini_api_key": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeCompletion:
    """Completion client returning queued responses; exceptions in the queue are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []
        self.calls = []

    async def generate(self, prompt, *, temperature=0.0, response_mime_type="application/json"):
        self.prompts.append(prompt)
        self.calls.append({"temperature": temperature, "response_mime_type": response_mime_type})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def rate_limited(retry_after=None):
    return RateLimitError("Resource has been exhausted", retry_after=retry_after)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    menu_store = MenuStore(engine=engine)
    yield menu_store
    menu_store.dispose()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def client(store, completion, sleep):
    app.state.settings = make_settings(gemini_api_key="test-key")
    app.state.store = store
    app.dependency_overrides[get_extractor_factory] = lambda: (lambda: MenuExtractor(completion, sleep=sleep))
    yield TestClient(app)
    app.dependency_overrides.clear()
