from app.models.student import Student
from app.models.school_class import SchoolClass
from app.models.attendance import Attendance, AttendanceStatus

__all__ = ["Student", "SchoolClass", "Attendance", "AttendanceStatus"]
