import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models.user import UserRole
from app.schemas.user import RegisterRequest
from app.services.auth_service import AuthService
from app.utils.rate_limit import RateLimiter, get_rate_limiter


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_redis_counter():
    """
    Build a mock Redis client whose pipeline counts INCR calls per key,
    enough to drive RateLimiter without a Redis server.
    """
    counts = {}
    client = MagicMock()

    def pipeline():
        pipe = MagicMock()
        pending = []
        pipe.incr.side_effect = lambda key: pending.append(key)

        def execute():
            key = pending[-1]
            counts[key] = counts.get(key, 0) + 1
            return [counts[key], True]

        pipe.execute.side_effect = execute
        return pipe

    client.pipeline.side_effect = pipeline
    return client


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def rate_limiter():
    """Rate limiter backed by an in-test counter instead of Redis."""
    limiter = RateLimiter(client=make_redis_counter(), limit=60, window_seconds=60)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield limiter
    app.dependency_overrides.pop(get_rate_limiter, None)


@pytest.fixture(scope="function")
def client(rate_limiter):
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Welcome e-mails are queued on Celery; never reach a broker in tests
    with patch("app.api.auth.send_welcome_email.delay"):
        with TestClient(app) as test_client:
            yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def _create_user(role: UserRole, email: str) -> str:
    db = TestingSessionLocal()
    try:
        _, token = AuthService(db).register(
            RegisterRequest(
                name=f"{role.value.title()} User",
                email=email,
                password="password123",
                password_confirmation="password123",
            ),
            role=role,
        )
        return token
    finally:
        db.close()


@pytest.fixture(scope="function")
def admin_headers(client):
    """Authorization header for an admin account."""
    token = _create_user(UserRole.ADMIN, "admin@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def user_headers(client):
    """Authorization header for a plain user account."""
    token = _create_user(UserRole.USER, "user@example.com")
    return {"Authorization": f"Bearer {token}"}
