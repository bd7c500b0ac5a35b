"""
Forum Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own file-backed SQLite database (aiosqlite) with
       the tables created from Base.metadata, and an app instance built by
       create_app() around that database and a recording mail double.

Fixture Hierarchy (all function-scoped):
    database
    ├── db_session ─────────── service-level tests
    └── forum_app ──────────── (also uses mail_service)
        └── client ─────────── HTTPX AsyncClient over ASGITransport
            └── create_user ── register + login helper
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./forum_test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"  # fastest cost bcrypt accepts
os.environ["SMTP_HOST"] = ""
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import Database
from app.main import create_app
from app.services.credential_store import CredentialStore
from app.services.mail_service import MailService
from app.services.question_repository import QuestionRepository
from app.services.token_service import TokenService

TEST_SECRET = os.environ["JWT_SECRET"]


@pytest_asyncio.fixture
async def database(tmp_path):
    """A connected Database on a throwaway SQLite file, schema already created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'forum.db'}")
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """
    One session for a whole service-level test.

    Services only flush, so everything a test writes is visible to its
    later queries through this same session.
    """
    async with database.session() as session:
        yield session


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def credential_store(token_service):
    return CredentialStore(token_service, bcrypt_rounds=4, session_ttl=timedelta(hours=24))


@pytest.fixture
def question_repository():
    return QuestionRepository(default_page_size=5, max_page_size=100)


@pytest.fixture
def mail_service():
    """
    Records password reset mails instead of talking to SMTP.

    Usage:
        mail_service.send_password_reset.assert_awaited_once()
        kwargs = mail_service.send_password_reset.await_args.kwargs
    """
    mail = MagicMock(spec=MailService)
    mail.enabled = True
    mail.send_password_reset = AsyncMock()
    return mail


@pytest.fixture
def forum_app(database, mail_service):
    return create_app(database=database, mail_service=mail_service)


@pytest_asyncio.fixture
async def client(forum_app):
    """
    HTTPX AsyncClient routed straight into the ASGI app (no server, no lifespan).

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=forum_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_user(client):
    """
    Register a user through the API, log them in and return what tests need.

    Returns a dict: userid, username, email, password, token, headers.
    """

    async def _create(username: str = "abebe", password: str = "secret123", email: str = None):
        email = email or f"{username}@example.com"
        response = await client.post(
            "/api/users/register",
            json={
                "username": username,
                "firstname": username.capitalize(),
                "lastname": "Tester",
                "email": email,
                "password": password,
            },
        )
        assert response.status_code == 201, response.text

        response = await client.post("/api/users/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return {
            "userid": body["userid"],
            "username": username,
            "email": email,
            "password": password,
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _create
