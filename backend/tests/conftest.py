"""Shared fixtures: an in-memory database, a recording mailer and a movable clock."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import roombook.models  # noqa: F401
from roombook.api.deps import get_clock, get_mailer, get_room_images
from roombook.core.config import Settings, get_settings
from roombook.core.limiter import limiter
from roombook.core.security import get_password_hash
from roombook.db import get_session
from roombook.main import create_application
from roombook.models import Room
from roombook.services.mailer import SendResult
from roombook.services.rooms import RoomImageStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-admin"

# Well clear of any real "now" so past-start checks only trip when a test wants them to
NOW = datetime(2030, 1, 15, 8, 0, 0)


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: List[dict] = []
        self.fail_with: Optional[str] = None
        self.raise_error = False

    def send(self, to: str, subject: str, html: str) -> SendResult:
        if self.raise_error:
            raise RuntimeError("smtp exploded")
        self.sent.append({"to": to, "subject": subject, "html": html})
        if self.fail_with:
            return SendResult.failed(self.fail_with)
        return SendResult.ok()


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    return get_password_hash(ADMIN_PASSWORD)


@pytest.fixture
def settings(tmp_path, admin_password_hash) -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        SECRET_KEY="test-secret-key",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD_HASH=admin_password_hash,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        MAIL_BACKEND="disabled",
    )


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def images(settings) -> RoomImageStore:
    return RoomImageStore(settings.UPLOAD_DIR, settings.MAX_IMAGE_SIZE)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(name="client")
def client_fixture(session, settings, mailer, clock, images):
    app = create_application(settings)
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_room_images] = lambda: images
    # Not used as a context manager: startup would create tables in the real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def room(session) -> Room:
    room = Room(name="Boardroom", capacity=10, features="Projector, Whiteboard")
    session.add(room)
    session.commit()
    session.refresh(room)
    return room


@pytest.fixture
def admin_headers(client) -> dict:
    response = client.post(
        "/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.json()
    return {"Authorization": f"Bearer {response.json()['token']}"}


def booking_payload(room_id: int, start: datetime, hours: float = 1, **overrides) -> dict:
    payload = {
        "room_id": room_id,
        "subject": "Quarterly planning",
        "description": "Budget review",
        "organizer_email": "organizer@example.com",
        "start_datetime": start.isoformat(),
        "end_datetime": (start + timedelta(hours=hours)).isoformat(),
        "total_participants": 5,
        "internal_participants": 3,
        "external_participants": 2,
        "meeting_type": "in-person",
        "attendee_emails": ["one@example.com", "two@example.com"],
    }
    payload.update(overrides)
    return payload
