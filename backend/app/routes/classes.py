"""
Classes API routes - CRUD operations and attendance summary for classes.

A class is unique on its (name, subject) pair. The attendance summary
groups every mark of the class by calendar date.
"""

import time
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.errors import NotFoundError, ConflictError, commit_or_conflict
from app.models.attendance import Attendance
from app.models.school_class import SchoolClass
from app.serializers import serialize_class, serialize_attendance
from app.services.statistics import summarize_attendance, build_daily_summary
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")
db_logger = get_logger("db")

DUPLICATE_MESSAGE = "Class with this name and subject already exists"
NOT_FOUND_MESSAGE = "Class not found"


# ── Pydantic schemas ─────────────────────────────────────────

class ClassPayload(BaseModel):
    """Schema for creating or fully replacing a class."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, description="Class name")
    subject: str = Field(..., min_length=1, description="Subject")
    teacher: str = Field(..., min_length=1, description="Teacher's name")


def get_class_or_404(db: Session, class_id: str) -> SchoolClass:
    school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not school_class:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return school_class


def find_conflicting_class(db: Session, payload: ClassPayload,
                           exclude_id: Optional[str] = None) -> Optional[SchoolClass]:
    query = db.query(SchoolClass).filter(
        SchoolClass.name == payload.name,
        SchoolClass.subject == payload.subject
    )
    if exclude_id:
        query = query.filter(SchoolClass.id != exclude_id)
    return query.first()


@router.get("/api/classes")
def list_classes(
    teacher: Optional[str] = Query(None, description="Filter by teacher"),
    subject: Optional[str] = Query(None, description="Filter by subject"),
    db: Session = Depends(get_db)
):
    """List classes, newest first."""
    start_time = time.time()

    query = db.query(SchoolClass)
    if teacher:
        query = query.filter(SchoolClass.teacher == teacher)
    if subject:
        query = query.filter(SchoolClass.subject == subject)

    classes = query.order_by(SchoolClass.created_at.desc()).all()

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Listed {} classes".format(len(classes)),
                     extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "success": True,
        "data": [serialize_class(c) for c in classes],
        "count": len(classes)
    }


@router.get("/api/classes/{class_id}")
def get_class(class_id: str, db: Session = Depends(get_db)):
    """Get a single class."""
    school_class = get_class_or_404(db, class_id)
    return {"success": True, "data": serialize_class(school_class)}


@router.post("/api/classes", status_code=201)
def create_class(payload: ClassPayload, db: Session = Depends(get_db)):
    """Create a class; the (name, subject) pair must be unused."""
    if find_conflicting_class(db, payload):
        raise ConflictError(DUPLICATE_MESSAGE)

    school_class = SchoolClass(**payload.model_dump())
    db.add(school_class)
    commit_or_conflict(db, DUPLICATE_MESSAGE)
    db.refresh(school_class)

    log_with_context(db_logger, "INFO",
        "Created class: {} ({})".format(school_class.name, school_class.subject),
        context={"class_id": str(school_class.id)})

    return {
        "success": True,
        "message": "Class created successfully",
        "data": serialize_class(school_class)
    }


@router.put("/api/classes/{class_id}")
def update_class(class_id: str, payload: ClassPayload, db: Session = Depends(get_db)):
    """Replace a class's fields; keeping its own (name, subject) pair is allowed."""
    if find_conflicting_class(db, payload, exclude_id=class_id):
        raise ConflictError(DUPLICATE_MESSAGE)

    school_class = get_class_or_404(db, class_id)
    for field, value in payload.model_dump().items():
        setattr(school_class, field, value)
    commit_or_conflict(db, DUPLICATE_MESSAGE, context={"class_id": class_id})
    db.refresh(school_class)

    log_with_context(db_logger, "INFO",
        "Updated class: {} ({})".format(school_class.name, school_class.subject),
        context={"class_id": class_id})

    return {
        "success": True,
        "message": "Class updated successfully",
        "data": serialize_class(school_class)
    }


@router.delete("/api/classes/{class_id}")
def delete_class(class_id: str, db: Session = Depends(get_db)):
    """Delete a class that has no attendance marks."""
    attendance_count = db.query(func.count(Attendance.id)).filter(
        Attendance.class_id == class_id
    ).scalar()
    if attendance_count > 0:
        raise ConflictError("Cannot delete class with existing attendance records")

    school_class = get_class_or_404(db, class_id)
    db.delete(school_class)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted class: {}".format(class_id),
                     context={"class_id": class_id})

    return {"success": True, "message": "Class deleted successfully"}


@router.get("/api/classes/{class_id}/attendance-summary")
def get_class_attendance_summary(class_id: str, db: Session = Depends(get_db)):
    """
    Attendance summary for a class.

    Returns every mark (newest first) joined with the student's name and
    roll number, overall counts with the attendance percentage, and a
    per-date tally of present/absent/late/total.
    """
    start_time = time.time()
    school_class = get_class_or_404(db, class_id)

    attendance = db.query(Attendance).options(
        joinedload(Attendance.student)
    ).filter(
        Attendance.class_id == class_id
    ).order_by(Attendance.date.desc()).all()

    summary = summarize_attendance(attendance, context={"class_id": class_id})
    daily_summary = build_daily_summary(attendance)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Attendance summary for class {}: {} marks over {} days".format(
            class_id, summary["total"], len(daily_summary)),
        context={"class_id": class_id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "success": True,
        "data": {
            "class": serialize_class(school_class),
            "attendance": [serialize_attendance(a, with_class=False) for a in attendance],
            "summary": summary,
            "daily_summary": daily_summary
        }
    }
