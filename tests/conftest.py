import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RAZORPAY_SANDBOX", "true")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.enums import Role
from app.services import events
from tests.factories import make_provider, make_user


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _clear_listeners():
    yield
    events._listeners.clear()


@pytest.fixture
def client_user(db):
    return make_user(db)


@pytest.fixture
def other_client(db):
    return make_user(db)


@pytest.fixture
def admin_user(db):
    return make_user(db, role=Role.ADMIN.value)


@pytest.fixture
def provider(db):
    return make_provider(db)


@pytest.fixture
def now():
    # Fixed clock a month before the scenario dates used in tests
    return datetime(2025, 5, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def future():
    return datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=30)


@pytest.fixture
def api(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
