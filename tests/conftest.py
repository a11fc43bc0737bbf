import os
import tempfile

# Must be set before quiz_arena.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="quiz_arena_test_")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["JWT_SECRET_KEY"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ.pop("SMTP_SERVER", None)

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quiz_arena.app import app
from quiz_arena.core.database import get_db
from quiz_arena.core.dependencies import get_mailer
from quiz_arena.models.base import Base
from quiz_arena.utils.mailer import Mailer

ADMIN_TOKEN = "test-admin-token"
PASSWORD = "secret-pass"

_counter = itertools.count()


class RecordingMailer(Mailer):
    """Keeps outgoing mail in memory instead of talking to SMTP."""

    def __init__(self):
        super().__init__(server=None)
        self.sent = []
        self.codes = {}

    def send(self, to, subject, body):
        self.sent.append((to, subject, body))

    def send_verification_code(self, to, name, code, ttl_minutes):
        self.codes[to] = code
        super().send_verification_code(to, name, code, ttl_minutes)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(session_factory, mailer):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Register and log in a user; returns a dict with id, email, token and headers."""

    def _make_user(role="student", name=None, email=None, password=PASSWORD):
        n = next(_counter)
        email = email or f"{role}{n}@example.com"
        payload = {
            "name": name or f"{role.title()} {n}",
            "email": email,
            "password": password,
            "role": role,
        }
        if role == "admin":
            payload["admin_token"] = ADMIN_TOKEN
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 201, resp.text

        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return {
            "user_id": body["user"]["user_id"],
            "email": email,
            "name": payload["name"],
            "token": body["token"],
            "refresh_token": body["refresh_token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _make_user


SAMPLE_QUESTIONS = [
    {"text": "2 + 2 = ?", "options": ["3", "4", "5"], "correct_answer": "4"},
    {"text": "Capital of France?", "options": ["Paris", "Rome"], "correct_answer": "Paris"},
    {"text": "Largest planet?", "options": ["Mars", "Jupiter", "Venus"], "correct_answer": "Jupiter"},
]


@pytest.fixture
def make_quiz(client):
    """Create a quiz as the given teacher; returns the created quiz summary."""

    def _make_quiz(teacher, title="General knowledge", duration=60,
                   password="quizpass", questions=None):
        resp = client.post(
            "/api/quizzes/create",
            json={
                "title": title,
                "duration": duration,
                "password": password,
                "questions": questions or SAMPLE_QUESTIONS,
            },
            headers=teacher["headers"],
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["quiz"]

    return _make_quiz


@pytest.fixture
def take_quiz(client):
    """Unlock a quiz and submit answers chosen by question text."""

    def _take_quiz(student, quiz_id, choices, password="quizpass"):
        resp = client.post(
            f"/api/quizzes/get/{quiz_id}",
            json={"password": password},
            headers=student["headers"],
        )
        assert resp.status_code == 200, resp.text
        questions = resp.json()["questions"]
        answers = [
            {"question_id": q["question_id"], "selected_option": choices[q["text"]]}
            for q in questions
            if q["text"] in choices
        ]
        return client.post(
            "/api/quizzes/submit",
            json={"quiz_id": quiz_id, "answers": answers},
            headers=student["headers"],
        )

    return _take_quiz
