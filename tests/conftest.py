from __future__ import annotations

import os

# Must be set before rollbook.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from rollbook.database import SessionLocal, create_tables, drop_tables
from rollbook.main import app
from rollbook.models import User, Section, Student
from rollbook.services.access import identity_for_user
from rollbook.services.broadcast import LiveUpdateBroadcaster
from rollbook.services.seed import seed_demo_data, TEACHER_PASSWORD, STUDENT_PASSWORD


@pytest.fixture
def db():
    drop_tables()
    create_tables()
    session = SessionLocal()
    seed_demo_data(session)
    yield session
    session.close()


@pytest.fixture
def client(db):
    app.state.broadcaster = LiveUpdateBroadcaster()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def section_1a(db) -> Section:
    return db.query(Section).filter(Section.name == "1-A").one()


@pytest.fixture
def section_2a(db) -> Section:
    return db.query(Section).filter(Section.name == "2-A").one()


@pytest.fixture
def students_1a(db, section_1a) -> list[Student]:
    return db.query(Student).filter(Student.section_id == section_1a.id).order_by(Student.roll_no).all()


def user_by_institution_id(db, institution_id: str) -> User:
    return db.query(User).filter(User.institution_id == institution_id).one()


@pytest.fixture
def ayesha(db):
    """TCH-1001, allocated to 1-A and 1-B."""
    return identity_for_user(db, user_by_institution_id(db, "TCH-1001"))


@pytest.fixture
def imran(db):
    """TCH-1002, allocated to 2-A only."""
    return identity_for_user(db, user_by_institution_id(db, "TCH-1002"))


@pytest.fixture
def ali(db):
    """STD-2001, roll 1 in 1-A."""
    return identity_for_user(db, user_by_institution_id(db, "STD-2001"))


def login(client: TestClient, institution_id: str, password: str | None = None):
    if password is None:
        password = TEACHER_PASSWORD if institution_id.startswith("TCH") else STUDENT_PASSWORD
    response = client.post("/api/auth/login", json={"institutionId": institution_id, "password": password})
    assert response.status_code == 200, response.text
    return response
