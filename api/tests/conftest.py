import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENABLE_PROMETHEUS", "false")
os.environ.setdefault("PASSWORD_HASH_TIME_COST", "1")
os.environ.setdefault("PASSWORD_HASH_MEMORY_COST", "1024")
os.environ.setdefault("PASSWORD_HASH_PARALLELISM", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from vidvault.config import settings
from vidvault.db import Database
from vidvault.main import create_app
from vidvault.notifications import get_email_sender


class FakeEmailSender:
    """Collects messages instead of talking to SMTP."""

    def __init__(self):
        self.sent = []

    async def send(self, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})


def make_database(path) -> Database:
    database = Database(f"sqlite+aiosqlite:///{path}")

    @event.listens_for(database.engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return database


@pytest.fixture(autouse=True)
def upload_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "video_upload_dir", str(tmp_path / "uploads" / "videos"))
    monkeypatch.setattr(settings, "thumbnail_upload_dir", str(tmp_path / "uploads" / "thumbnails"))
    monkeypatch.setattr(settings, "storage_backend", "local")
    monkeypatch.setattr(settings, "enforce_status_transitions", True)
    monkeypatch.setattr(settings, "extract_video_metadata", False)


@pytest.fixture
async def database(tmp_path):
    database = make_database(tmp_path / "service.db")
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def client(tmp_path, email_sender):
    database = make_database(tmp_path / "api.db")
    app = create_app(database=database)
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    with TestClient(app) as test_client:
        test_client.portal.call(database.create_all)
        test_client.database = database
        yield test_client


@pytest.fixture
def signup(client):
    """Register an account through the API and return its response data."""

    def _signup(email="jane@example.com", password="correct-horse", first_name="Jane", last_name="Doe"):
        response = client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "firstName": first_name, "lastName": last_name},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _signup


@pytest.fixture
def auth_headers(signup):
    data = signup()
    return {"Authorization": f"Bearer {data['token']}"}
