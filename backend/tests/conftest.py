import os

# Settings and the engine are built at import time; point them at test values first.
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("IDENTITY_PROVIDER", "cognito")
os.environ.setdefault("COGNITO_APP_CLIENT_ID", "test-client-id")
os.environ.setdefault("COGNITO_USER_POOL_ID", "us-east-1_TestPool")

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from spoom.core.base import Base
from spoom.core import config as app_config

# Import models so they register with SQLAlchemy metadata.
from spoom.models import Message, User, UserSettings, Workspace, WorkspaceMember, WorkspaceSettings  # noqa: F401

from spoom.core.database import get_db
from spoom.dependencies.auth import get_current_user
from spoom.dependencies.provider import get_provider
from spoom.services.identity_provider import reset_identity_provider
from spoom.services.users import provision_user

from fakes import FakeIdentityProvider


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # The in-memory DB persists across tests with StaticPool; reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests sometimes tweak global settings (app_config.settings.*). Because that object is
    process-global, restore values after each test to avoid cross-test coupling.
    """
    keys = [
        "AUTH_COOKIES_ENABLED",
        "AUTH_COOKIE_SAMESITE",
        "COGNITO_APP_CLIENT_SECRET",
        "COGNITO_USER_POOL_ID",
        "USERNAME_RECOVERY_WINDOW_HOURS",
        "USERNAME_RECOVERY_STEP_SECONDS",
        "ENV",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)
        reset_identity_provider()


@pytest.fixture()
def provider():
    return FakeIdentityProvider()


@pytest.fixture()
def app(db_session, provider):
    from spoom.main import app as fastapi_app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_provider] = lambda: provider
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def anon_client(app):
    """Client with no authenticated user override."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def users(db_session):
    """Two distinct provisioned users for membership / isolation tests."""
    user_a = provision_user(db_session, "sub-user-a", "test@example.com", name="Test User")
    user_b = provision_user(db_session, "sub-user-b", "other@example.com", name="Other User")
    return user_a, user_b


@pytest.fixture()
def client(app, users):
    """Default client authenticated as user_a."""
    user_a, _ = users
    app.dependency_overrides[get_current_user] = lambda: user_a
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def client_for(app):
    """
    Context manager to create a client authenticated as an arbitrary user.

    Usage:
        with client_for(user) as c:
            ...
    """

    @contextmanager
    def _client_for(user: User):
        previous = app.dependency_overrides.get(get_current_user)
        app.dependency_overrides[get_current_user] = lambda: user
        try:
            with TestClient(app) as c:
                yield c
        finally:
            if previous is None:
                app.dependency_overrides.pop(get_current_user, None)
            else:
                app.dependency_overrides[get_current_user] = previous

    return _client_for
