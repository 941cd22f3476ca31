# /tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from managea.db.base import Base
from managea.main import app
from managea.services.class_helpers import crud
from managea.services.database_service import DatabaseService, get_db_service
from managea.services.live_updates import LiveUpdateHub


@pytest.fixture
def engine():
    """A private in-memory SQLite database per test, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def hub():
    return LiveUpdateHub()


@pytest.fixture
def db(session_factory, hub):
    """Creates a NEW, CLEAN DatabaseService for EACH test function."""
    session = session_factory()
    service = DatabaseService(session, hub=hub)
    yield service
    session.close()


@pytest.fixture
def client(session_factory, hub):
    """TestClient whose requests use the in-memory database instead of the real one."""
    def override_get_db_service():
        session = session_factory()
        try:
            yield DatabaseService(session, hub=hub)
        finally:
            session.close()

    app.dependency_overrides[get_db_service] = override_get_db_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def hostel_class(db):
    return crud.create_class("Grade 8", db)


@pytest.fixture
def ali(db, hostel_class):
    return crud.add_student("Ali", "101", hostel_class.id, None, db)


@pytest.fixture
def bilal(db, hostel_class):
    return crud.add_student("Bilal", "102", hostel_class.id, None, db)


@pytest.fixture
def assert_fines_consistent(db):
    """Checks that every student's total_fine equals the sum of their violations' fines."""
    def check():
        ledger = db.get_fine_totals_by_student()
        for student in db.get_all_students():
            assert student.total_fine == ledger.get(student.id, 0), student.name
    return check
