import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="college-events-uploads-")
os.environ["APP_TIMEZONE"] = "UTC"
for key in ("S3_BUCKET_NAME", "AWS_REGION", "DEFAULT_ADMIN_EMAIL", "DEFAULT_ADMIN_PASSWORD"):
    os.environ.pop(key, None)

import pytest
from fastapi.testclient import TestClient

from auth import create_access_token, get_password_hash, token_subject
from database import Base, SessionLocal, engine
from models import (
    Admin,
    AdminRole,
    CellsAndAssociation,
    Event,
    EventMode,
    EventStatus,
    RegistrationMode,
    RegistrationType,
)
from server import app


@pytest.fixture(autouse=True)
def _reset_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _create_admin(db, email, cells, role=AdminRole.ADMIN, password="password123"):
    admin = Admin(
        name=email.split("@")[0].title(),
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        cells_and_association=cells,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def _auth_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(data={'sub': token_subject(admin)})}"}


@pytest.fixture
def it_admin(db):
    return _create_admin(db, "it.admin@college.edu", CellsAndAssociation.IT)


@pytest.fixture
def iic_admin(db):
    return _create_admin(db, "iic.admin@college.edu", CellsAndAssociation.IIC)


@pytest.fixture
def super_admin(db):
    return _create_admin(db, "root@college.edu", CellsAndAssociation.OT, role=AdminRole.SUPER_ADMIN)


@pytest.fixture
def make_event(db):
    def _make(admin, **overrides):
        values = dict(
            name="Code Sprint",
            organizing_body="IT Association",
            event_type=["Hackathon"],
            registration_mode=RegistrationMode.PLATFORM,
            registration_type=RegistrationType.PLATFORM,
            mode=EventMode.ONLINE,
            event_date=datetime.now(timezone.utc) + timedelta(days=30),
            coordinator_name="Coordinator",
            coordinator_contact="9876543210",
            cells_and_association=admin.cells_and_association,
            description="An event",
            rules="Be nice",
            registration_link="https://example.com/register",
            max_participants=100,
            current_registrations=0,
            status=EventStatus.UPCOMING,
            is_published=True,
            created_by=admin.id,
        )
        values.update(overrides)
        event = Event(**values)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event
    return _make


@pytest.fixture
def it_headers(it_admin):
    return _auth_headers(it_admin)


@pytest.fixture
def iic_headers(iic_admin):
    return _auth_headers(iic_admin)


@pytest.fixture
def super_headers(super_admin):
    return _auth_headers(super_admin)
