import pytest

from app.errors import ConflictError, commit_or_conflict
from app.models.student import Student
from app.routes import students as students_routes


def _student(**overrides):
    fields = {
        "name": "Aarav Sharma",
        "roll_number": "10A-01",
        "class_name": "10-A",
        "email": "aarav@example.com",
    }
    fields.update(overrides)
    return Student(**fields)


def test_commit_or_conflict_rolls_back_on_unique_violation(db_session):
    db_session.add(_student())
    db_session.add(_student(email="other@example.com"))

    with pytest.raises(ConflictError) as excinfo:
        commit_or_conflict(db_session, "duplicate student")

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "duplicate student"

    # Session is usable again after the rollback
    assert db_session.query(Student).count() == 0
    db_session.add(_student())
    commit_or_conflict(db_session, "duplicate student")
    assert db_session.query(Student).count() == 1


def test_racing_create_reports_conflict(client, monkeypatch):
    payload = {
        "name": "Aarav Sharma",
        "roll_number": "10A-01",
        "class_name": "10-A",
        "email": "aarav@example.com",
    }
    assert client.post("/api/students", json=payload).status_code == 201

    # Simulate a concurrent request that passed the pre-check first
    monkeypatch.setattr(students_routes, "find_conflicting_student", lambda *args, **kwargs: None)

    resp = client.post("/api/students", json=dict(payload, email="second@example.com"))
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Student with this roll number or email already exists",
    }

    resp = client.post("/api/students", json=dict(payload, roll_number="10A-02", email="second@example.com"))
    assert resp.status_code == 201
    assert client.get("/api/students").json()["count"] == 2
