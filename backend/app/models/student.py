"""
Student model - represents an enrolled student.

Students are identified by UUID. Roll number and email are each unique
across all students. Attendance rows reference students via student_id.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class Student(Base):
    """
    SQLAlchemy model for the students table.

    class_name is a free-text label ("10-A", "Grade 7") and is not a
    reference to the classes table.
    """
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique student identifier")
    name = Column(Text, nullable=False,
                  doc="Student's full name")
    roll_number = Column(String(64), nullable=False,
                         doc="School-assigned roll number")
    class_name = Column(Text, nullable=False,
                        doc="Free-text class label")
    email = Column(String(255), nullable=False,
                   doc="Lower-cased student email")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when student record was created")
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="Timestamp of the last update")

    # Relationship: one student has many attendance marks
    attendance = relationship("Attendance", back_populates="student")

    __table_args__ = (
        UniqueConstraint("roll_number", name="uq_students_roll_number"),
        UniqueConstraint("email", name="uq_students_email"),
    )

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}', roll_number='{self.roll_number}')>"
