import os

# Settings are read once at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["REVIEW_MAX_ATTEMPTS"] = "2"
os.environ["REVIEW_RETRY_DELAY_SECONDS"] = "0"
os.environ["JOB_POLL_INTERVAL_SECONDS"] = "0.05"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from griffin.infrastructure.database import Base, SessionLocal, engine
from griffin.interfaces.deps import get_job_dispatcher
from griffin.main import app

SAMPLE_REVIEW = {
    "summary": "Small function with no obvious problems.",
    "bestPractices": [
        {"category": "Style", "message": "Use a descriptive function name", "severity": "info", "lineNumber": 1},
    ],
    "refactoring": [],
    "vulnerabilities": [],
    "performance": [],
    "maintainability": {"score": 90, "issues": []},
    "complexity": {"cyclomaticComplexity": 1, "cognitiveComplexity": 0, "suggestions": []},
    "documentation": {"coverageScore": 0, "suggestions": ["Add a docstring"]},
    "testing": {"recommendations": ["Add a unit test"], "coverageAnalysis": "No tests present"},
}

JS_SUBMISSION = {"code": "function f(){}", "language": "javascript"}


class RecordingDispatcher:
    """Remembers dispatched job ids instead of running them."""

    def __init__(self):
        self.job_ids = []

    def dispatch(self, job_id: str) -> None:
        self.job_ids.append(job_id)


def fake_reviewer(code, language, filename=None, findings=None):
    return dict(SAMPLE_REVIEW)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(dispatcher):
    app.dependency_overrides[get_job_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API and return its bearer token."""
    def _register(username="alice", email="alice@example.com", password="secret123", **extra):
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["token"]
    return _register


@pytest.fixture
def auth_headers(register):
    token = register()
    return {"Authorization": f"Bearer {token}"}
