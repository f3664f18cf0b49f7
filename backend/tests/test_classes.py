def _payload(**overrides):
    payload = {"name": "10-A", "subject": "Mathematics", "teacher": "Mrs. Rao"}
    payload.update(overrides)
    return payload


def test_create_and_get_class(client):
    resp = client.post("/api/classes", json=_payload())
    assert resp.status_code == 201
    created = resp.json()["data"]

    resp = client.get(f"/api/classes/{created['id']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert (data["name"], data["subject"], data["teacher"]) == ("10-A", "Mathematics", "Mrs. Rao")


def test_duplicate_name_subject_rejected(client):
    client.post("/api/classes", json=_payload())
    resp = client.post("/api/classes", json=_payload(teacher="Someone Else"))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Class with this name and subject already exists"


def test_same_name_different_subject_allowed(client):
    client.post("/api/classes", json=_payload())
    resp = client.post("/api/classes", json=_payload(subject="Physics"))
    assert resp.status_code == 201


def test_class_validation(client):
    resp = client.post("/api/classes", json={"name": "A", "subject": "", "teacher": " "})
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"name", "subject", "teacher"}


def test_list_classes(client, make_class):
    make_class(teacher="Mrs. Rao")
    newest = make_class(teacher="Mr. Khan")

    body = client.get("/api/classes").json()
    assert body["success"] is True
    assert body["count"] == 2
    assert body["data"][0]["id"] == newest["id"]

    body = client.get("/api/classes", params={"teacher": "Mr. Khan"}).json()
    assert [c["id"] for c in body["data"]] == [newest["id"]]


def test_update_class_to_own_pair_succeeds(client, make_class):
    school_class = make_class(name="10-A", subject="Mathematics")
    resp = client.put(f"/api/classes/{school_class['id']}",
                      json=_payload(teacher="New Teacher"))
    assert resp.status_code == 200
    assert resp.json()["data"]["teacher"] == "New Teacher"


def test_update_class_to_other_pair_fails(client, make_class):
    make_class(name="10-A", subject="Mathematics")
    other = make_class(name="10-A", subject="Physics")

    resp = client.put(f"/api/classes/{other['id']}", json=_payload())
    assert resp.status_code == 400
    assert resp.json()["message"] == "Class with this name and subject already exists"


def test_update_missing_class(client):
    assert client.put("/api/classes/missing", json=_payload()).status_code == 404


def test_delete_class(client, make_class):
    school_class = make_class()
    resp = client.delete(f"/api/classes/{school_class['id']}")
    assert resp.status_code == 200
    assert client.get(f"/api/classes/{school_class['id']}").status_code == 404


def test_delete_class_with_attendance_blocked(client, make_student, make_class, mark):
    student = make_student()
    school_class = make_class()
    mark(student["id"], school_class["id"], "2024-01-15")

    resp = client.delete(f"/api/classes/{school_class['id']}")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot delete class with existing attendance records"


def test_delete_missing_class(client):
    resp = client.delete("/api/classes/missing")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Class not found"


def test_attendance_summary(client, make_student, make_class, mark):
    school_class = make_class()
    first = make_student(name="Aarav Sharma", roll_number="10A-01")
    second = make_student(name="Diya Patel", roll_number="10A-02")
    mark(first["id"], school_class["id"], "2024-01-15", "Present")
    mark(second["id"], school_class["id"], "2024-01-15", "Present")
    mark(first["id"], school_class["id"], "2024-01-16", "Late")
    mark(second["id"], school_class["id"], "2024-01-16", "Absent")

    resp = client.get(f"/api/classes/{school_class['id']}/attendance-summary")
    assert resp.status_code == 200
    data = resp.json()["data"]

    assert data["class"]["id"] == school_class["id"]
    assert data["summary"] == {
        "total": 4, "present": 2, "absent": 1, "late": 1, "percentage": 75.0
    }
    assert data["daily_summary"] == {
        "2024-01-15": {"present": 2, "absent": 0, "late": 0, "total": 2},
        "2024-01-16": {"present": 0, "absent": 1, "late": 1, "total": 2},
    }
    assert len(data["attendance"]) == 4
    assert data["attendance"][0]["date"] == "2024-01-16"
    students = {a["student"]["roll_number"]: a["student"]["name"] for a in data["attendance"]}
    assert students == {"10A-01": "Aarav Sharma", "10A-02": "Diya Patel"}


def test_attendance_summary_empty_class(client, make_class):
    school_class = make_class()
    data = client.get(f"/api/classes/{school_class['id']}/attendance-summary").json()["data"]
    assert data["summary"]["total"] == 0
    assert data["summary"]["percentage"] == 0
    assert data["daily_summary"] == {}


def test_attendance_summary_missing_class(client):
    assert client.get("/api/classes/missing/attendance-summary").status_code == 404
