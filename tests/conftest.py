"""
Shared fixtures: in-memory database, API client and bearer tokens for the
seeded accounts.
"""
import os
from datetime import datetime, timezone

# Must be set before the app reads its settings
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TASK_QUEUE_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.config import get_settings
from app.core.security import create_access_token, hash_password
from app.db import set_engine, init_db, close_db_connection
from app.models import Analysis, User


@pytest.fixture
def engine(tmp_path, monkeypatch):
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    get_settings.cache_clear()

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    set_engine(engine)
    init_db()

    yield engine

    SQLModel.metadata.drop_all(engine)
    close_db_connection()
    get_settings.cache_clear()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    from app.api import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def other_user(session):
    user = User(id="user-456", name="Other User", password=hash_password("other"), role="user")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def bearer(user_id: str, name: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, name, role)}"}


@pytest.fixture
def user_headers(engine):
    return bearer("user-123", "Demo User", "user")


@pytest.fixture
def admin_headers(engine):
    return bearer("admin-001", "Administrator", "admin")


@pytest.fixture
def other_headers(other_user):
    return bearer(other_user.id, other_user.name, other_user.role)


@pytest.fixture
def make_analysis(session):
    """Factory inserting an analysis row directly."""
    def _make(uploader_id: str = "user-123", uploader_name: str = "Demo User", **fields) -> Analysis:
        fields.setdefault("video_name", "ad.mp4")
        fields.setdefault("date", datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))
        analysis = Analysis(uploader_id=uploader_id, uploader_name=uploader_name, **fields)
        session.add(analysis)
        session.commit()
        session.refresh(analysis)
        return analysis
    return _make
