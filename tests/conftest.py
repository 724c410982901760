from datetime import datetime

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from news_agg.auth.passwords import PasswordHasher
from news_agg.auth.strategies import AuthenticationResolver
from news_agg.auth.tokens import TokenService
from news_agg.config import Settings
from news_agg.container import init_container
from news_agg.db.models import Article
from news_agg.db.sessions import (enable_sqlite_foreign_keys, init_db,
                                  session_scope)
from news_agg.main import create_app
from news_agg.services import AuthService
from news_agg.stores import CredentialStore

PASSWORD = "Sup3rSecret"
ADMIN_EMAIL = "admin@newsmail.io"

# Newest first by published_at: quantum, phone, election, chip, football (undated).
ARTICLES = [
    {
        "title": "Chip rally lifts markets",
        "description": "Semiconductor stocks surge",
        "author": "Jane Doe",
        "source_name": "Reuters",
        "category": "technology",
        "published_at": datetime(2024, 1, 10, 12, 0),
        "url": "https://news.example.org/chip-rally",
    },
    {
        "title": "Election night recap",
        "description": "Results from every district",
        "author": "John Smith",
        "source_name": "BBC News",
        "category": "politics",
        "published_at": datetime(2024, 1, 15, 8, 0),
        "url": "https://news.example.org/election",
    },
    {
        "title": "New phone review",
        "description": "Battery life at 100% brightness",
        "author": "Nilay Patel",
        "source_name": "The Verge",
        "category": "technology",
        "published_at": datetime(2024, 1, 31, 23, 30),
        "url": "https://news.example.org/phone",
    },
    {
        "title": "Football final",
        "description": None,
        "author": None,
        "source_name": "BBC News",
        "category": "sports",
        "published_at": None,
        "url": "https://news.example.org/football",
    },
    {
        "title": "Quantum computing breakthrough",
        "description": "A new error-correction record",
        "author": "Jane Doe",
        "source_name": "Reuters",
        "category": "science",
        "published_at": datetime(2024, 2, 2, 9, 0),
        "url": "https://news.example.org/quantum",
    },
]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-access-secret-0123456789abcdef0123456789",
        jwt_refresh_secret="test-refresh-secret-0123456789abcdef012345678",
        session_secret="test-session-secret",
        password_time_cost=1,
        password_memory_cost=1024,
        admin_emails=(ADMIN_EMAIL,),
        return_reset_token=True,
        frontend_url="http://frontend.test",
    )


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture()
def tokens(settings) -> TokenService:
    return TokenService.from_settings(settings)


@pytest.fixture()
def users(session, hasher) -> CredentialStore:
    return CredentialStore(session, hasher)


@pytest.fixture()
def resolver(users, hasher, tokens, settings) -> AuthenticationResolver:
    return AuthenticationResolver(users, hasher, tokens, admin_emails=settings.admin_emails)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []

    def send_reset(self, user, token: str) -> None:
        self.sent.append((user.id, token))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def auth_service(users, resolver, tokens, notifier, settings) -> AuthService:
    return AuthService(
        users,
        resolver,
        tokens,
        notifier,
        admin_emails=settings.admin_emails,
        return_reset_token=settings.return_reset_token,
    )


def seed_articles(engine) -> dict[str, int]:
    """Insert ARTICLES and return their ids keyed by title."""
    with session_scope(engine) as session:
        rows = [Article(**data) for data in ARTICLES]
        session.add_all(rows)
        session.flush()
        return {row.title: row.id for row in rows}


@pytest.fixture()
def article_ids(engine) -> dict[str, int]:
    return seed_articles(engine)


@pytest.fixture()
def client(settings, engine):
    container = init_container(settings)
    container.engine.override(providers.Object(engine))
    app = create_app(container)
    with TestClient(app) as client:
        yield client


def register(client, email: str, name: str = "Test Reader", password: str = PASSWORD) -> dict:
    response = client.post(
        "/api/auth/register", json={"email": email, "password": password, "name": name}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
