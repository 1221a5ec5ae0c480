"""Pytest configuration and fixtures for the shipline tests."""

import os

# Settings are read once at import, so the environment must be in place
# before anything from shipline is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnop"
os.environ["ENVIRONMENT"] = "test"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["RATE_LIMIT_ENABLED"] = "true"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import shipline.models  # noqa: E402,F401
from shipline.core.ratelimit import reset_rate_limits  # noqa: E402
from shipline.core.security import hash_password  # noqa: E402
from shipline.database import Base, SessionLocal, engine  # noqa: E402
from shipline.main import app  # noqa: E402
from shipline.models.user import Role, User  # noqa: E402
from shipline.models.vessel import Vessel  # noqa: E402

PASSWORD = "Secret123!"


@pytest.fixture(autouse=True)
def fresh_store():
    """Empty tables and rate-limit counters for every test."""
    Base.metadata.create_all(bind=engine)
    reset_rate_limits()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """A session on the in-memory store."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    """HTTP client for the ASGI app; keeps cookies between requests."""
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Insert a user row directly."""

    def _make(user_id="alice", password=PASSWORD, role=Role.USER):
        user = User(user_id=user_id, password_hash=hash_password(password), role=role.value)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_vessel(db):
    """Insert a vessel row directly; ETD defaults to two days after ETA."""

    def _make(
        vessel_name="MSC X",
        voyage_no="V1",
        country="Panama",
        port_name="Port of Hamburg",
        eta=datetime(2024, 1, 1, tzinfo=timezone.utc),
        etd=None,
    ):
        vessel = Vessel(
            vessel_name=vessel_name,
            voyage_no=voyage_no,
            country=country,
            port_name=port_name,
            eta=eta,
            etd=etd or eta + timedelta(days=2),
        )
        db.add(vessel)
        db.commit()
        db.refresh(vessel)
        return vessel

    return _make


@pytest.fixture
def login(client):
    """Log in through the API so the session cookie lands on ``client``."""

    def _login(user_id="alice", password=PASSWORD):
        response = client.post("/api/auth/login", json={"userId": user_id, "password": password})
        assert response.status_code == 200, response.text
        return response

    return _login


@pytest.fixture
def user_client(client, make_user, login):
    """Client logged in as a regular user."""
    make_user("alice")
    login("alice")
    return client


@pytest.fixture
def admin_client(client, make_user, login):
    """Client logged in as an admin."""
    make_user("root_admin", role=Role.ADMIN)
    login("root_admin")
    return client


def _vessel_payload(**overrides):
    body = {
        "vesselName": "MSC X",
        "voyageNo": "V1",
        "country": "Panama",
        "portName": "Port of Hamburg",
        "ETA": "2024-01-01T00:00:00Z",
        "ETD": "2024-01-02T00:00:00Z",
    }
    body.update(overrides)
    return body


@pytest.fixture
def vessel_payload():
    """Builder for POST /api/vessels bodies; keyword overrides replace fields."""
    return _vessel_payload
