"""
Shared pytest fixtures: backend on sys.path, in-memory SQLite, a fake
Gemini client and an authenticated TestClient.
"""

import os
import sys
import json

import pytest

BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# Settings are read once on first import
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-unit-tests-only"
os.environ["GOOGLE_API_KEY"] = ""


def make_question(n: int, correct: str = "A") -> dict:
    return {
        "name": f"Question {n}?",
        "options": {"A": f"a{n}", "B": f"b{n}", "C": f"c{n}", "D": f"d{n}"},
        "correctOption": correct,
    }


class FakeLLM:
    """Stands in for GeminiClient; records prompts, returns canned text."""

    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.prompts = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def ping(self) -> dict:
        return {"ok": True, "model": "fake", "content": "OK"}


@pytest.fixture
def questions_json():
    return json.dumps([make_question(i) for i in range(1, 4)])


@pytest.fixture(autouse=True)
def fresh_db():
    from db import Base, engine, init_db
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    from db import get_session
    with get_session() as db:
        yield db


@pytest.fixture
def auth_headers():
    from auth import create_token
    return {"Authorization": f"Bearer {create_token('admin-1')}"}


@pytest.fixture
def fake_llm(questions_json):
    return FakeLLM(questions_json)


@pytest.fixture
def client(fake_llm):
    from fastapi.testclient import TestClient
    from main import app, get_llm

    app.dependency_overrides[get_llm] = lambda: fake_llm
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
