import fnmatch
import os

# Settings are read at import time, so they have to be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.auth import TokenService, get_token_service
from app.core.cache import get_cache_store
from app.core.database import Base, get_db
from app.core.rate_limit import RateLimiter
from app.user import crud as user_crud
from app.user.models import User

TEST_SECRET = "test-secret"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryCache:
    """Dict-backed stand-in for CacheStore with the same async interface."""

    def __init__(self):
        self.data = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, expire=3600):
        self.data[key] = value
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def delete_pattern(self, pattern):
        matches = [key for key in self.data if fnmatch.fnmatch(key, pattern)]
        for key in matches:
            del self.data[key]
        return len(matches)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def token_service():
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def client(db_session, cache, token_service):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_store] = lambda: cache
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.state.rate_limiter = RateLimiter(100000)

    # No context manager: the lifespan would create tables on the configured database
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(username="alice", password="secret123", role="user", **fields) -> User:
        user = user_crud.create_user(db_session, username=username, password=password, role=role, **fields)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(token_service):
    def _auth_headers(user: User) -> dict:
        token = token_service.issue(user.user_id, user.username, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user(username="admin", role="admin"))


@pytest.fixture
def user_headers(make_user, auth_headers):
    return auth_headers(make_user(username="shopper"))
