"""
SchoolClass model - a taught class (name + subject + teacher).

The (name, subject) pair is unique.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique class identifier")
    name = Column(String(255), nullable=False,
                  doc="Class name, e.g. '10-A'")
    subject = Column(String(255), nullable=False,
                     doc="Subject taught in this class")
    teacher = Column(Text, nullable=False,
                     doc="Teacher's name")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when class was created")
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="Timestamp of the last update")

    attendance = relationship("Attendance", back_populates="school_class")

    __table_args__ = (
        UniqueConstraint("name", "subject", name="uq_classes_name_subject"),
    )

    def __repr__(self):
        return f"<SchoolClass(id={self.id}, name='{self.name}', subject='{self.subject}')>"
