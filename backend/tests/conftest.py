# backend/tests/conftest.py

import os

# Tests always run against an in-memory database and never call a real LLM
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["HF_API_TOKEN"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "local"

import pytest
from fastapi.testclient import TestClient

from mindbridge.db.init_db import init_db, drop_db
from mindbridge.db.session import SessionLocal
from mindbridge.main import app
from mindbridge.services.auth_service import create_user
from mindbridge.services.change_feed import ChangeFeed
from mindbridge.services.session_store import DatabaseSessionStore


@pytest.fixture(autouse=True)
def fresh_database():
    init_db()
    yield
    drop_db()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


def login(client, email: str, password: str) -> dict:
    response = client.post(
        "/api/v1/auth/login",
        data={
            "username": email,
            "password": password,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    token = response.json()["access_token"]

    return {
        "Authorization": f"Bearer {token}"
    }


@pytest.fixture
def student(db_session):
    return create_user(
        db_session,
        "student@example.com",
        "testpassword",
        first_name="Sam",
        department="college_computing_studies",
    )


@pytest.fixture
def other_student(db_session):
    return create_user(
        db_session,
        "other@example.com",
        "testpassword",
        department="college_law",
    )


@pytest.fixture
def admin_user(db_session):
    return create_user(db_session, "admin@example.com", "adminpassword", role="admin")


@pytest.fixture
def auth_headers(client, student):
    return login(client, "student@example.com", "testpassword")


@pytest.fixture
def other_headers(client, other_student):
    return login(client, "other@example.com", "testpassword")


@pytest.fixture
def admin_headers(client, admin_user):
    return login(client, "admin@example.com", "adminpassword")


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def store(feed):
    return DatabaseSessionStore(SessionLocal, feed)
