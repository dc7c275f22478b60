from rollbook.models.user import User
from rollbook.models.grade import Grade, Section
from rollbook.models.student import Student
from rollbook.models.allocation import TeacherAllocation
from rollbook.models.attendance import Attendance

__all__ = ["User", "Grade", "Section", "Student", "TeacherAllocation", "Attendance"]
