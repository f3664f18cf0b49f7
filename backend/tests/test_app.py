import json
import logging

from fastapi.testclient import TestClient

from app.database import get_db
from app.logging_config import StructuredJsonFormatter, request_id_var
from app.main import app


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert body["endpoints"]["class_summary"] == "GET /api/classes/{id}/attendance-summary"


def test_request_id_header(client):
    resp = client.get("/api/students")
    assert len(resp.headers["X-Request-ID"]) == 36


def test_unhandled_error_returns_500_envelope(db_session):
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise RuntimeError("database unavailable")

        def close(self):
            pass

    def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    try:
        with TestClient(app, raise_server_exceptions=False) as broken_client:
            resp = broken_client.get("/api/students")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Internal server error",
        "error": "database unavailable",
    }


def test_structured_formatter_includes_context():
    token = request_id_var.set("req-123")
    try:
        record = logging.LogRecord("app.db", logging.INFO, __file__, 1,
                                   "Created student", None, None)
        record.context = {"student_id": "s-1"}
        record.extra_data = {"duration_ms": 1.5}
        entry = json.loads(StructuredJsonFormatter().format(record))
    finally:
        request_id_var.reset(token)

    assert entry["level"] == "INFO"
    assert entry["channel"] == "db"
    assert entry["context"] == {"request_id": "req-123", "student_id": "s-1"}
    assert entry["extra"] == {"duration_ms": 1.5}
