"""
Attendance model - one attendance mark for a student in a class on a day.

Each mark contains:
- References to the student and the class
- The calendar date of the mark
- A status from the closed set Present | Absent | Late

At most one mark exists per (student, class, date).
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class Attendance(Base):
    """
    SQLAlchemy model for the attendance table.

    Status is stored as its string value so rows stay readable from
    plain SQL.
    """
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique attendance identifier")
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False,
                        doc="Reference to the marked student")
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False,
                      doc="Reference to the class the mark belongs to")
    date = Column(Date, nullable=False,
                  doc="Calendar date of the mark")
    status = Column(String(16), nullable=False, default=AttendanceStatus.PRESENT.value,
                    doc="Present | Absent | Late")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when the mark was created")
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="Timestamp of the last update")

    student = relationship("Student", back_populates="attendance")
    school_class = relationship("SchoolClass", back_populates="attendance")

    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "date", name="uq_attendance_student_class_date"),
        CheckConstraint("status IN ('Present', 'Absent', 'Late')", name="ck_attendance_status"),
        Index("ix_attendance_class_id", "class_id"),
        Index("ix_attendance_date", "date"),
    )

    def __repr__(self):
        return f"<Attendance(id={self.id}, student={self.student_id}, class={self.class_id}, date={self.date}, status='{self.status}')>"
