import pytest

from app.models import Attendance, SchoolClass, Student


@pytest.mark.parametrize("model, expected", [
    (Student, {"uq_students_roll_number", "uq_students_email"}),
    (SchoolClass, {"uq_classes_name_subject"}),
    (Attendance, {"uq_attendance_student_class_date", "ck_attendance_status"}),
])
def test_named_constraints(model, expected):
    names = {c.name for c in model.__table__.constraints if c.name}
    assert expected <= names


@pytest.mark.parametrize("model", [Student, SchoolClass, Attendance])
def test_timestamps_are_timezone_aware(model):
    columns = model.__table__.c
    assert columns.created_at.type.timezone is True
    assert columns.updated_at.type.timezone is True
