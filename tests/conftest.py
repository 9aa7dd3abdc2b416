# tests/conftest.py
import os
from types import SimpleNamespace

os.environ["PREFECT_TEST_MODE"] = "1"
os.environ["PREFECT_LOGGING_LEVEL"] = "ERROR"
# In-memory database for the app lifespan; tests inject their own engine anyway
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from salestrend.database import Base, init_db, make_engine
from salestrend.llm import TextGenerator
from salestrend.main import app, get_engine, get_text_generator
from salestrend.service import SalesEngine
from salestrend.storage import SalesStore


class FakeCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai_client(reply=None, error=None):
    """Stands in for openai.OpenAI: only chat.completions.create is used."""
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(reply, error)))


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database for a single test.
    """
    test_engine = make_engine("sqlite://")
    init_db(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()

@pytest.fixture(scope="function")
def store(engine):
    return SalesStore(engine)

@pytest.fixture(scope="function")
def sales(store):
    return SalesEngine(store)

@pytest.fixture(scope="function")
def client(engine):
    """
    Overrides the dependency injection to use our test database and no AI provider.
    """
    def get_test_engine_override():
        yield engine

    app.dependency_overrides[get_engine] = get_test_engine_override
    app.dependency_overrides[get_text_generator] = lambda: None

    # TestClient runs background tasks SYNCHRONOUSLY, which is great for testing.
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def ai_generator():
    return TextGenerator(api_key="test-key", model="gpt-4o-mini",
                         client=fake_openai_client(reply="Sales are climbing steadily."))

@pytest.fixture(scope="function")
def january_rows():
    return [
        {"date": "2025-01-05", "product": "Widget", "category": "Hardware", "price": 100, "quantity": 2},
        {"date": "2025-01-12", "product": "Gadget", "category": "Hardware", "price": 50, "quantity": 4},
        {"date": "2025-01-20", "product": "Manual", "category": "Books", "price": 20, "quantity": 5},
    ]
