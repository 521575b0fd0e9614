import os
import tempfile

# Must be set before tik_agent.config is imported (settings are cached)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["QUEUE_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["APP_ID"] = "test-app"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["OWNER_OPEN_ID"] = "owner-open-id"
os.environ["FRONTEND_URL"] = "http://localhost:8081"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="tik_agent_media_")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from tik_agent import models  # noqa: F401 - register tables
from tik_agent.auth import create_session_token
from tik_agent.core.redis import get_product_cache
from tik_agent.database import Base, build_engine, build_session_factory, get_db
from tik_agent.main import app
from tik_agent.repositories.user_repository import UserRepository
from tik_agent.schemas.user import OAuthUserInfo
from tik_agent.services.oauth_client import get_oauth_client

engine = build_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = build_session_factory(engine)


class FakeOAuthClient:
    """Stands in for the OAuth server; records the calls it receives."""

    def __init__(self):
        self.calls = []
        self.fail = False

    async def exchange_code_for_token(self, code, state):
        self.calls.append(("exchange", code, state))
        if self.fail:
            raise RuntimeError("exchange failed")
        return f"access-{code}"

    async def get_user_info(self, access_token):
        self.calls.append(("user_info", access_token))
        return OAuthUserInfo(open_id="oauth-user", name="OAuth User", email="oauth@example.com", login_method="google")

    async def get_user_info_with_jwt(self, jwt_token):
        self.calls.append(("user_info_jwt", jwt_token))
        if self.fail:
            raise RuntimeError("sync failed")
        return OAuthUserInfo(open_id="synced-user", name="Synced User", login_method="email")


@pytest.fixture
def session_factory():
    Base.metadata.create_all(engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def oauth():
    return FakeOAuthClient()


@pytest.fixture
def client(db, oauth):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_oauth_client] = lambda: oauth
    app.dependency_overrides[get_product_cache] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return UserRepository(db).upsert("user-1", name="Test User", email="user@example.com")


@pytest.fixture
def other_user(db):
    return UserRepository(db).upsert("user-2", name="Other User")


@pytest.fixture
def admin(db):
    return UserRepository(db).upsert("owner-open-id", owner_open_id="owner-open-id", name="Owner")


def bearer(open_id: str, name: str = "Test User") -> dict:
    return {"Authorization": f"Bearer {create_session_token(open_id, name)}"}


@pytest.fixture
def auth_headers(user):
    return bearer(user.open_id, user.name)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin.open_id, admin.name)
