"""
Attendance API routes - marking and querying daily attendance.

Provides endpoints for:
- Listing marks with filters (student, class, date range, status)
- Overall attendance statistics (dashboard figure)
- Creating, replacing and deleting a single mark
- Bulk-marking a class for one date

A mark is unique on (student, class, date). Student and class
references are checked with lookup queries before every write.
"""

import time
import uuid
from datetime import date as date_type, datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.errors import ApiError, NotFoundError, ConflictError, commit_or_conflict
from app.models.attendance import Attendance, AttendanceStatus
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.serializers import serialize_attendance
from app.services.statistics import summarize_attendance
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")
db_logger = get_logger("db")

DUPLICATE_MESSAGE = "Attendance already marked for this student in this class on this date"
NOT_FOUND_MESSAGE = "Attendance record not found"


def today_utc() -> date_type:
    return datetime.now(timezone.utc).date()


def _utc_date(value: datetime) -> date_type:
    """Calendar date of a timestamp in UTC; naive timestamps are taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def parse_attendance_date(value):
    """
    Reduce the accepted date inputs to a calendar date.

    Accepts a date, a datetime, "YYYY-MM-DD" or a full ISO 8601
    timestamp ("2024-01-15T09:30:00Z"). Timestamps are reduced to
    their UTC calendar date. None means today (UTC).
    """
    if value is None:
        return today_utc()
    if isinstance(value, datetime):
        return _utc_date(value)
    if isinstance(value, date_type):
        return value
    if isinstance(value, str):
        value = value.strip()
        if len(value) > 10:
            if value.endswith("Z"):
                value = value[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError:
                raise ValueError("Date must be YYYY-MM-DD or an ISO 8601 timestamp")
            return _utc_date(parsed)
    return value


# ── Pydantic schemas ─────────────────────────────────────────

class AttendancePayload(BaseModel):
    """Schema for creating or fully replacing an attendance mark."""
    model_config = ConfigDict(str_strip_whitespace=True)

    student_id: str = Field(..., min_length=1, description="Student ID")
    class_id: str = Field(..., min_length=1, description="Class ID")
    date: date_type = Field(default_factory=today_utc, description="Calendar date (defaults to today)")
    status: AttendanceStatus = Field(AttendanceStatus.PRESENT, description="Present | Absent | Late")

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return parse_attendance_date(value)


class BulkMarkEntry(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    student_id: str = Field(..., min_length=1)
    status: AttendanceStatus = AttendanceStatus.PRESENT


class BulkAttendancePayload(BaseModel):
    """Schema for marking several students of one class on one date."""
    model_config = ConfigDict(str_strip_whitespace=True)

    class_id: str = Field(..., min_length=1, description="Class ID")
    date: date_type = Field(default_factory=today_utc, description="Calendar date (defaults to today)")
    records: List[BulkMarkEntry] = Field(..., min_length=1, description="One entry per student")

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return parse_attendance_date(value)


def get_attendance_or_404(db: Session, attendance_id: str) -> Attendance:
    record = db.query(Attendance).options(
        joinedload(Attendance.student),
        joinedload(Attendance.school_class)
    ).filter(Attendance.id == attendance_id).first()
    if not record:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return record


def ensure_references_exist(db: Session, student_id: str, class_id: str):
    """Raise NotFoundError unless both the student and the class exist."""
    if not db.query(Student.id).filter(Student.id == student_id).first():
        raise NotFoundError("Student not found")
    if not db.query(SchoolClass.id).filter(SchoolClass.id == class_id).first():
        raise NotFoundError("Class not found")


def find_existing_mark(db: Session, student_id: str, class_id: str, mark_date: date_type,
                       exclude_id: Optional[str] = None) -> Optional[Attendance]:
    query = db.query(Attendance).filter(
        Attendance.student_id == student_id,
        Attendance.class_id == class_id,
        Attendance.date == mark_date
    )
    if exclude_id:
        query = query.filter(Attendance.id != exclude_id)
    return query.first()


def _filtered_query(db: Session, student_id=None, class_id=None, on_date=None,
                    status=None, date_from=None, date_to=None):
    query = db.query(Attendance)
    if student_id:
        query = query.filter(Attendance.student_id == student_id)
    if class_id:
        query = query.filter(Attendance.class_id == class_id)
    if on_date:
        query = query.filter(Attendance.date == on_date)
    if status:
        query = query.filter(Attendance.status == status.value)
    if date_from:
        query = query.filter(Attendance.date >= date_from)
    if date_to:
        query = query.filter(Attendance.date <= date_to)
    return query


@router.get("/api/attendance")
def list_attendance(
    student_id: Optional[str] = Query(None, description="Filter by student ID"),
    class_id: Optional[str] = Query(None, description="Filter by class ID"),
    date: Optional[date_type] = Query(None, description="Filter by exact date"),
    status: Optional[AttendanceStatus] = Query(None, description="Filter by status"),
    date_from: Optional[date_type] = Query(None, description="Earliest date (inclusive)"),
    date_to: Optional[date_type] = Query(None, description="Latest date (inclusive)"),
    db: Session = Depends(get_db)
):
    """List attendance marks, newest date first."""
    start_time = time.time()

    query = _filtered_query(db, student_id, class_id, date, status, date_from, date_to)
    records = query.options(
        joinedload(Attendance.student),
        joinedload(Attendance.school_class)
    ).order_by(Attendance.date.desc(), Attendance.created_at.desc()).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Listed {} attendance marks".format(len(records)),
                     extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "success": True,
        "data": [serialize_attendance(r) for r in records],
        "count": len(records)
    }


@router.get("/api/attendance/stats")
def get_attendance_stats(
    class_id: Optional[str] = Query(None, description="Restrict to one class"),
    date: Optional[date_type] = Query(None, description="Restrict to one date"),
    db: Session = Depends(get_db)
):
    """Overall present/absent/late counts and attendance percentage."""
    records = _filtered_query(db, class_id=class_id, on_date=date).all()
    statistics = summarize_attendance(records, context={"class_id": class_id} if class_id else None)

    log_with_context(logger, "INFO",
        "Overall attendance stats: {} marks, {}%".format(statistics["total"], statistics["percentage"]))

    return {"success": True, "data": statistics}


@router.get("/api/attendance/{attendance_id}")
def get_attendance(attendance_id: str, db: Session = Depends(get_db)):
    """Get a single attendance mark."""
    record = get_attendance_or_404(db, attendance_id)
    return {"success": True, "data": serialize_attendance(record)}


@router.post("/api/attendance", status_code=201)
def create_attendance(payload: AttendancePayload, db: Session = Depends(get_db)):
    """Mark attendance for one student in one class on one date."""
    ensure_references_exist(db, payload.student_id, payload.class_id)

    if find_existing_mark(db, payload.student_id, payload.class_id, payload.date):
        raise ConflictError(DUPLICATE_MESSAGE)

    record = Attendance(
        student_id=payload.student_id,
        class_id=payload.class_id,
        date=payload.date,
        status=payload.status.value
    )
    db.add(record)
    commit_or_conflict(db, DUPLICATE_MESSAGE,
                       context={"student_id": payload.student_id, "class_id": payload.class_id})
    record = get_attendance_or_404(db, record.id)

    log_with_context(db_logger, "INFO",
        "Marked {} on {}".format(record.status, record.date.isoformat()),
        context={
            "attendance_id": str(record.id),
            "student_id": payload.student_id,
            "class_id": payload.class_id
        })

    return {
        "success": True,
        "message": "Attendance marked successfully",
        "data": serialize_attendance(record)
    }


@router.post("/api/attendance/bulk", status_code=201)
def bulk_mark_attendance(payload: BulkAttendancePayload, db: Session = Depends(get_db)):
    """
    Mark a whole class for one date.

    Students that already have a mark for the class and date get their
    status updated; the others get a new mark.
    """
    start_time = time.time()

    if not db.query(SchoolClass.id).filter(SchoolClass.id == payload.class_id).first():
        raise NotFoundError("Class not found")

    student_ids = [entry.student_id for entry in payload.records]
    if len(set(student_ids)) != len(student_ids):
        raise ApiError(400, "Each student may appear only once per bulk request")

    found_ids = {
        row.id for row in db.query(Student.id).filter(Student.id.in_(student_ids)).all()
    }
    missing = [sid for sid in student_ids if sid not in found_ids]
    if missing:
        raise NotFoundError("Student not found: {}".format(", ".join(missing)))

    existing = {
        r.student_id: r for r in db.query(Attendance).filter(
            Attendance.class_id == payload.class_id,
            Attendance.date == payload.date,
            Attendance.student_id.in_(student_ids)
        ).all()
    }

    created = 0
    updated = 0
    marked_ids = []
    for entry in payload.records:
        record = existing.get(entry.student_id)
        if record:
            record.status = entry.status.value
            updated += 1
        else:
            record = Attendance(
                id=str(uuid.uuid4()),
                student_id=entry.student_id,
                class_id=payload.class_id,
                date=payload.date,
                status=entry.status.value
            )
            db.add(record)
            created += 1
        marked_ids.append(record.id)

    commit_or_conflict(db, DUPLICATE_MESSAGE, context={"class_id": payload.class_id})

    records = db.query(Attendance).options(
        joinedload(Attendance.student),
        joinedload(Attendance.school_class)
    ).filter(Attendance.id.in_(marked_ids)).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(db_logger, "INFO",
        "Bulk attendance for class {} on {}: {} created, {} updated".format(
            payload.class_id, payload.date.isoformat(), created, updated),
        context={"class_id": payload.class_id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "success": True,
        "message": "Attendance marked for {} students".format(len(records)),
        "data": [serialize_attendance(r) for r in records],
        "created": created,
        "updated": updated,
        "count": len(records)
    }


@router.put("/api/attendance/{attendance_id}")
def update_attendance(attendance_id: str, payload: AttendancePayload, db: Session = Depends(get_db)):
    """Replace a mark; the new (student, class, date) must not belong to another mark."""
    record = get_attendance_or_404(db, attendance_id)
    ensure_references_exist(db, payload.student_id, payload.class_id)

    if find_existing_mark(db, payload.student_id, payload.class_id, payload.date,
                          exclude_id=attendance_id):
        raise ConflictError(DUPLICATE_MESSAGE)

    record.student_id = payload.student_id
    record.class_id = payload.class_id
    record.date = payload.date
    record.status = payload.status.value
    commit_or_conflict(db, DUPLICATE_MESSAGE, context={"attendance_id": attendance_id})
    record = get_attendance_or_404(db, attendance_id)

    log_with_context(db_logger, "INFO", "Updated attendance mark",
                     context={"attendance_id": attendance_id},
                     extra_data={"status": record.status, "date": record.date.isoformat()})

    return {
        "success": True,
        "message": "Attendance updated successfully",
        "data": serialize_attendance(record)
    }


@router.delete("/api/attendance/{attendance_id}")
def delete_attendance(attendance_id: str, db: Session = Depends(get_db)):
    """Delete a mark."""
    record = get_attendance_or_404(db, attendance_id)
    db.delete(record)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted attendance mark",
                     context={"attendance_id": attendance_id})

    return {"success": True, "message": "Attendance deleted successfully"}
