"""
Students API routes - CRUD operations and attendance statistics for students.

Provides endpoints for:
- Listing students (newest first) with optional filters
- Viewing, creating, replacing and deleting a student
- A student's attendance history with present/absent/late counts
"""

import re
import time
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.errors import NotFoundError, ConflictError, commit_or_conflict
from app.models.attendance import Attendance
from app.models.student import Student
from app.serializers import serialize_student, serialize_attendance
from app.services.statistics import summarize_attendance
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")
db_logger = get_logger("db")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z0-9-]{2,}$")

DUPLICATE_MESSAGE = "Student with this roll number or email already exists"
NOT_FOUND_MESSAGE = "Student not found"


# ── Pydantic schemas ─────────────────────────────────────────

class StudentPayload(BaseModel):
    """Schema for creating or fully replacing a student."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, description="Student's full name")
    roll_number: str = Field(..., min_length=1, description="Unique roll number")
    class_name: str = Field(..., min_length=1, description="Free-text class label")
    email: str = Field(..., description="Unique email address")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email")
        return value


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_student_or_404(db: Session, student_id: str) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return student


def find_conflicting_student(db: Session, payload: StudentPayload,
                             exclude_id: Optional[str] = None) -> Optional[Student]:
    """Return another student already using the payload's roll number or email."""
    query = db.query(Student).filter(
        or_(Student.roll_number == payload.roll_number,
            Student.email == payload.email)
    )
    if exclude_id:
        query = query.filter(Student.id != exclude_id)
    return query.first()


@router.get("/api/students")
def list_students(
    class_name: Optional[str] = Query(None, description="Filter by class label"),
    search: Optional[str] = Query(None, description="Search name/roll number/email"),
    db: Session = Depends(get_db)
):
    """List students, newest first."""
    start_time = time.time()

    query = db.query(Student)
    if class_name:
        query = query.filter(Student.class_name == class_name)
    if search:
        pattern = "%{}%".format(escape_like(search.strip()))
        query = query.filter(
            (Student.name.ilike(pattern, escape="\\")) |
            (Student.roll_number.ilike(pattern, escape="\\")) |
            (Student.email.ilike(pattern, escape="\\"))
        )

    students = query.order_by(Student.created_at.desc()).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Listed {} students".format(len(students)),
                     extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "success": True,
        "data": [serialize_student(s) for s in students],
        "count": len(students)
    }


@router.get("/api/students/{student_id}")
def get_student(student_id: str, db: Session = Depends(get_db)):
    """Get a single student."""
    student = get_student_or_404(db, student_id)
    return {"success": True, "data": serialize_student(student)}


@router.post("/api/students", status_code=201)
def create_student(payload: StudentPayload, db: Session = Depends(get_db)):
    """Create a student; roll number and email must be unused."""
    if find_conflicting_student(db, payload):
        raise ConflictError(DUPLICATE_MESSAGE)

    student = Student(**payload.model_dump())
    db.add(student)
    commit_or_conflict(db, DUPLICATE_MESSAGE)
    db.refresh(student)

    log_with_context(db_logger, "INFO", "Created student: {}".format(student.name),
                     context={"student_id": str(student.id)},
                     extra_data={"roll_number": student.roll_number})

    return {
        "success": True,
        "message": "Student created successfully",
        "data": serialize_student(student)
    }


@router.put("/api/students/{student_id}")
def update_student(student_id: str, payload: StudentPayload, db: Session = Depends(get_db)):
    """Replace a student's fields; roll number/email must not belong to another student."""
    if find_conflicting_student(db, payload, exclude_id=student_id):
        raise ConflictError(DUPLICATE_MESSAGE)

    student = get_student_or_404(db, student_id)
    for field, value in payload.model_dump().items():
        setattr(student, field, value)
    commit_or_conflict(db, DUPLICATE_MESSAGE, context={"student_id": student_id})
    db.refresh(student)

    log_with_context(db_logger, "INFO", "Updated student: {}".format(student.name),
                     context={"student_id": student_id})

    return {
        "success": True,
        "message": "Student updated successfully",
        "data": serialize_student(student)
    }


@router.delete("/api/students/{student_id}")
def delete_student(student_id: str, db: Session = Depends(get_db)):
    """Delete a student that has no attendance marks."""
    attendance_count = db.query(func.count(Attendance.id)).filter(
        Attendance.student_id == student_id
    ).scalar()
    if attendance_count > 0:
        raise ConflictError("Cannot delete student with existing attendance records")

    student = get_student_or_404(db, student_id)
    db.delete(student)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted student: {}".format(student_id),
                     context={"student_id": student_id})

    return {"success": True, "message": "Student deleted successfully"}


@router.get("/api/students/{student_id}/attendance")
def get_student_attendance(student_id: str, db: Session = Depends(get_db)):
    """A student's attendance marks (newest first) with per-status statistics."""
    student = get_student_or_404(db, student_id)

    attendance = db.query(Attendance).options(
        joinedload(Attendance.school_class)
    ).filter(
        Attendance.student_id == student_id
    ).order_by(Attendance.date.desc()).all()

    statistics = summarize_attendance(attendance, context={"student_id": student_id})

    log_with_context(logger, "INFO",
        "Attendance statistics for student {}: {} marks, {}%".format(
            student_id, statistics["total"], statistics["percentage"]),
        context={"student_id": student_id})

    return {
        "success": True,
        "data": {
            "student": serialize_student(student),
            "attendance": [serialize_attendance(a, with_student=False) for a in attendance],
            "statistics": statistics
        }
    }
