import pytest
from fastapi.testclient import TestClient

from app.core.cache import cache
from app.main import app
from app.routers.estimator import get_completion_client, get_session_store
from app.services.session_store import SessionStore


class StubCompletionClient:
    """Records prompts and answers with a canned reply (or raises `error`)."""

    def __init__(self, reply: str = "32"):
        self.reply = reply
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def get_completion(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def stub_client():
    return StubCompletionClient()


@pytest.fixture
def session_store(stub_client):
    return SessionStore(stub_client)


@pytest.fixture
def client(stub_client, session_store):
    app.dependency_overrides[get_completion_client] = lambda: stub_client
    app.dependency_overrides[get_session_store] = lambda: session_store
    cache.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
