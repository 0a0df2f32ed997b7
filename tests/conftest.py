"""
Form builder - test configuration and fixtures
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from formbuilder.main import app
from formbuilder.config.database_config import Base, get_db
from formbuilder.config.env_config import settings
from formbuilder.schema.form_schema import FormCreate
from formbuilder.schema.user_schema import UserData
from formbuilder.services.form_service import create_form

fake = Faker()

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client sharing the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user() -> UserData:
    return UserData(id=fake.uuid4(), email=fake.email(), name=fake.name(), exp=0)


@pytest.fixture
def owner() -> UserData:
    return make_user()


@pytest.fixture
def other_user() -> UserData:
    return make_user()


def headers_for(user: UserData) -> dict:
    """Bearer header as issued by the auth service for this user"""
    claims = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "user_role": 1,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(owner: UserData) -> dict:
    return headers_for(owner)


@pytest.fixture
def other_headers(other_user: UserData) -> dict:
    return headers_for(other_user)


@pytest.fixture
def make_form(db_session: Session, owner: UserData):
    """Build a form from a plain payload through the authoring service"""
    def _make(payload: dict, user: UserData = None):
        return create_form(db_session, FormCreate(**payload), user or owner)
    return _make


@pytest.fixture
def contact_form(make_form):
    """Required text `name` plus optional select `country`"""
    return make_form({
        "title": "Contact",
        "sections": [
            {
                "title": "About you",
                "fields": [
                    {"type": "text", "label": "Full name", "name": "name", "required": True},
                    {"type": "select", "label": "Country", "name": "country", "options": ["RW", "KE"]},
                ],
            }
        ],
    })
