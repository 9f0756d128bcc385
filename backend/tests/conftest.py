import os

# Settings are cached and the engine is built at import time, so point them at SQLite first.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classgrid.api.deps import get_app_settings, get_db
from classgrid.core.config import Settings
from classgrid.db.base import Base
from classgrid.main import app
from classgrid.models.course import Course
from classgrid.models.group import StudentGroup
from classgrid.models.room import Room
from classgrid.models.subject import Subject
from classgrid.models.teacher import Teacher
import classgrid.models  # noqa: F401


def make_settings(**overrides) -> Settings:
    values = {"database_url": "sqlite+pysqlite://", "auto_create_schema": False}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def settings():
    return make_settings()


@pytest.fixture()
def client(session_factory, settings):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_settings] = lambda: settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class Catalog:
    """Small helper for putting entities in the test database."""

    def __init__(self, db):
        self.db = db

    def subject(self, name="Mathematics", code=None):
        record = Subject(name=name, code=code or name[:4].upper())
        self.db.add(record)
        self.db.flush()
        return record

    def teacher(self, name="Dr. Smith", skills=None, unavailable_times=None):
        record = Teacher(name=name, skills=skills or [], unavailable_times=unavailable_times or [])
        self.db.add(record)
        self.db.flush()
        return record

    def group(self, name="CS-A", size=25, unavailable_times=None):
        record = StudentGroup(name=name, size=size, unavailable_times=unavailable_times or [])
        self.db.add(record)
        self.db.flush()
        return record

    def room(self, name="Room 101", capacity=30, unavailable_times=None):
        record = Room(name=name, capacity=capacity, unavailable_times=unavailable_times or [])
        self.db.add(record)
        self.db.flush()
        return record

    def course(self, name, *, subject, teacher, group, room=None, weekly_sessions=1):
        record = Course(
            name=name,
            subject_id=subject.id,
            teacher_id=teacher.id,
            group_id=group.id,
            room_id=room.id if room is not None else None,
            weekly_sessions=weekly_sessions,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def commit(self):
        self.db.commit()


@pytest.fixture()
def catalog(db_session):
    return Catalog(db_session)
