"""
ORM -> JSON serializers shared by the routers.

Every API response wraps these dicts in the standard envelope
{"success": true, "data": ...}.
"""

from app.models.attendance import Attendance
from app.models.school_class import SchoolClass
from app.models.student import Student


def _iso(value):
    return value.isoformat() if value else None


def serialize_student(student: Student) -> dict:
    """Serialize a Student ORM object to a dict for API response."""
    return {
        "id": str(student.id),
        "name": student.name,
        "roll_number": student.roll_number,
        "class_name": student.class_name,
        "email": student.email,
        "created_at": _iso(student.created_at),
        "updated_at": _iso(student.updated_at)
    }


def serialize_class(school_class: SchoolClass) -> dict:
    """Serialize a SchoolClass ORM object to a dict for API response."""
    return {
        "id": str(school_class.id),
        "name": school_class.name,
        "subject": school_class.subject,
        "teacher": school_class.teacher,
        "created_at": _iso(school_class.created_at),
        "updated_at": _iso(school_class.updated_at)
    }


def serialize_attendance(record: Attendance, with_student: bool = True,
                         with_class: bool = True) -> dict:
    """
    Serialize an Attendance row, optionally joined with a summary of its
    student (name, roll number) and class (name, subject).
    """
    result = {
        "id": str(record.id),
        "student_id": str(record.student_id),
        "class_id": str(record.class_id),
        "date": _iso(record.date),
        "status": record.status,
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at)
    }
    if with_student:
        result["student"] = {
            "id": str(record.student.id),
            "name": record.student.name,
            "roll_number": record.student.roll_number
        } if record.student else None
    if with_class:
        result["class"] = {
            "id": str(record.school_class.id),
            "name": record.school_class.name,
            "subject": record.school_class.subject
        } if record.school_class else None
    return result
