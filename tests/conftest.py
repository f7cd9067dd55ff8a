"""
Shared fixtures: an in-memory SQLite database per test, a TestClient whose
session and signed-in user are injected, and a captured outbox instead of
real email delivery.
"""

import os

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("CONFLICT_DOMAINS", None)
os.environ.pop("ADMIN_NOTIFICATION_EMAIL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import email_service  # noqa: E402
from app.auth import get_current_user  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Enrollment, User  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
def admin_user(db_session):
    user = User(firebase_uid="admin-uid", email="admin@academy.test", full_name="Ada Admin", role="admin")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def normal_user(db_session):
    user = User(firebase_uid="student-uid", email="student@academy.test", full_name="Sam Student")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def enroll(db_session):
    """Enroll a user directly, bypassing the API and its notifications"""

    def _enroll(user, category):
        enrollment = Enrollment(user_id=user.id, category=category, is_active=True)
        db_session.add(enrollment)
        db_session.commit()
        return enrollment

    return _enroll


@pytest.fixture
def signed_in(admin_user):
    """Mutable holder for the user the client acts as"""
    return {"user": admin_user}


@pytest.fixture
def client(db_session, signed_in):
    def override_get_db():
        yield db_session

    async def override_current_user():
        return signed_in["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Every email the app tries to send, in order"""
    sent = []

    async def fake_send_email(to, subject, mjml_content, from_address=None):
        sent.append({"to": to, "subject": subject, "mjml": mjml_content})
        return {"id": f"test-{len(sent)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent
