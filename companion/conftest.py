"""Root conftest: shared fixtures for all companion tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure companion/ is on sys.path
_companion_dir = str(Path(__file__).resolve().parent)
if _companion_dir not in sys.path:
    sys.path.insert(0, _companion_dir)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401  (register all models with Base)

# In-memory SQLite for tests; StaticPool makes all connections share the same DB
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    import bcrypt
    from models.user import User

    u = User(
        username="testuser",
        password_hash=bcrypt.hashpw(b"testpass", bcrypt.gensalt()).decode(),
        coins=5,
        terms_accepted=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def character(db):
    from models.character import Character

    c = Character(
        key="priya",
        name="Priya",
        avatar="https://example.com/priya.png",
        intro="Hey! I'm Priya.",
        welcome_message="Hi sweetheart!",
        personality="sweet, caring",
        system_prompt="A sweet, caring companion.",
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture
def conversation(db, user, character):
    from models.conversation import Conversation

    conv = Conversation(user_id=user.id, character_id=character.id, language="english")
    db.add(conv)
    db.commit()
    db.refresh(conv)
    return conv


@pytest.fixture
def app(db):
    """The FastAPI app with the database dependency bound to the test session."""
    from main import app as _app
    from database import get_db

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    _app.dependency_overrides[get_db] = _override_get_db
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client, user):
    from auth import encode_auth_token

    client.headers["Authorization"] = f"Bearer {encode_auth_token(user)}"
    return client
