import os
import tempfile

# Settings are read at import time, so the environment must be in place first
_TMP_DIR = tempfile.mkdtemp(prefix="quizhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/quizhub.db"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LLM_API_KEY"] = "test-llm-key"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["PORT"] = "5000"
os.environ["BCRYPT_ROUNDS"] = "4"
# The whole suite shares one client address
os.environ["RATE_LIMIT"] = "100000/minute"
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from quizhub.db import Base, SessionLocal, engine
from quizhub.errors import GenerationUnavailable
from quizhub.generator import QuizGenerator, get_quiz_generator
from quizhub.main import app


class FakeCompletionClient:
    """Scripted stand-in for the completion client: replays queued replies."""

    def __init__(self):
        self.replies = []
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    async def complete(self, prompt, *, system=None, max_tokens=1000, temperature=0.2):
        self.calls.append({"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature})
        if not self.replies:
            raise GenerationUnavailable("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_llm():
    return FakeCompletionClient()


@pytest.fixture
def client(fake_llm):
    app.dependency_overrides[get_quiz_generator] = lambda: QuizGenerator(fake_llm)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(name="Ada", email="ada@example.com", password="secret123"):
        r = client.post("/auth/signup", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        body = r.json()
        return {
            "id": body["id"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register


@pytest.fixture
def auth_headers(register):
    return register()["headers"]
