import os

# Must be set before app.database is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db, set_sqlite_pragma
from app.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
event.listen(engine, "connect", set_sqlite_pragma)
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
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_student(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        payload = {
            "name": f"Student {n}",
            "roll_number": f"R-{n:03d}",
            "class_name": "10-A",
            "email": f"student{n}@example.com",
        }
        payload.update(overrides)
        resp = client.post("/api/students", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _make


@pytest.fixture
def make_class(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {
            "name": "10-A",
            "subject": f"Subject {counter['n']}",
            "teacher": "Mrs. Rao",
        }
        payload.update(overrides)
        resp = client.post("/api/classes", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _make


@pytest.fixture
def mark(client):
    def _mark(student_id, class_id, date, status="Present"):
        resp = client.post("/api/attendance", json={
            "student_id": student_id,
            "class_id": class_id,
            "date": date,
            "status": status,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _mark
