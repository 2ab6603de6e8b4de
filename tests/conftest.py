from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app import models
from app.db import get_session
from app.main import app
from app.services.bookings import institution_now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(session):
    """Insert a profile directly (no password hashing) for service-level tests."""
    counter = {"n": 0}

    def _make(role="student", full_name=None, department=None):
        counter["n"] += 1
        n = counter["n"]
        profile = models.Profile(
            role=role,
            full_name=full_name or f"{role.title()} {n}",
            email=f"{role}{n}@uni.test",
            password_hash="x",
            department=department,
        )
        session.add(profile)
        session.flush()
        if role == "professor":
            session.add(models.Professor(id=profile.id, department=department))
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def next_weekday():
    """Date of the next given ISO weekday (1=Mon) strictly after today."""

    def _next(isoweekday):
        today = institution_now().date()
        days = (isoweekday - today.isoweekday()) % 7 or 7
        return today + timedelta(days=days)

    return _next
