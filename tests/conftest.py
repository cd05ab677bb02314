import os

# Settings must exist before the marketplace package is imported
os.environ["DATABASE_URL"] = "sqlite:///./test_marketplace.db"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SUPABASE_JWT_AUDIENCE"] = "authenticated"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from marketplace.auth import CurrentUser, get_current_user
from marketplace.database import Base, get_db
from marketplace.main import app as fastapi_app

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_temp.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


class AuthAs:
    """Switches the user the API sees as the caller."""

    def __init__(self, user_id="u1"):
        self.user_id = user_id

    def __call__(self, user_id):
        self.user_id = user_id


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def login():
    return AuthAs()


@pytest.fixture
def raw_client():
    # Real token verification, test database
    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(login):
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_current_user] = lambda: CurrentUser(id=login.user_id)
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def add(db):
    def _add(*rows):
        for row in rows:
            db.add(row)
        db.commit()
        return rows[0] if len(rows) == 1 else rows
    return _add


@pytest.fixture
def make_intent(mocker):
    def _make(intent_id="pi_123", status="succeeded", amount=5000, metadata=None, client_secret="secret_123"):
        intent = mocker.Mock()
        intent.id = intent_id
        intent.status = status
        intent.amount = amount
        intent.client_secret = client_secret
        intent.metadata = metadata or {}
        return intent
    return _make
