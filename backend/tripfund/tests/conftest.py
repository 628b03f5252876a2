"""
Shared fixtures: an in-memory database per test and an authenticated client.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tripfund.models  # noqa: F401
from tripfund.db.base import Base
from tripfund.db.session import get_db
from tripfund.main import app


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager so the startup hook never touches the real database
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


def signup_and_login(client, email, password="testpassword123"):
    client.post("/api/auth/signup", json={"email": email, "password": password})
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    return signup_and_login(client, "owner@example.com")


@pytest.fixture
def other_headers(client):
    return signup_and_login(client, "viewer@example.com")
