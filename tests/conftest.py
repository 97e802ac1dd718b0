import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="aprova-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["FILE_STORAGE_DIR"] = os.path.join(_tmp_dir, "files")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GROQ_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.setup import Base, database  # noqa: E402
from main import app  # noqa: E402
from service.auth import TokenManager  # noqa: E402
from service.redis import Redis  # noqa: E402


class FakeRedis:
    """In-memory stand-in for the few redis-py calls the app makes."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


@pytest.fixture(autouse=True)
def fake_redis():
    fake = FakeRedis()
    Redis().redis_client = fake
    yield fake


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with database.get_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def make_headers(user_id: str) -> dict:
    token = TokenManager.create_access_token({"user_id": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return make_headers("user-1")


@pytest.fixture
def other_headers():
    return make_headers("user-2")


@pytest.fixture
def ai_enabled(monkeypatch):
    from config.setting import settings
    monkeypatch.setattr(settings, "GROQ_API_KEY", "test-key")


@pytest.fixture
def fake_llm(monkeypatch, ai_enabled):
    """Route LLM calls to a function of (system, prompt) and record them."""
    from service.ai import AIService

    calls = []

    def install(answer):
        def _invoke(self, system, prompt, max_tokens, temperature):
            calls.append({"system": system, "prompt": prompt, "max_tokens": max_tokens})
            if isinstance(answer, Exception):
                raise answer
            return answer(system, prompt) if callable(answer) else answer

        monkeypatch.setattr(AIService, "_invoke", _invoke)
        return calls

    return install
