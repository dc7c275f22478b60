"""
User model - login identities for teachers and students.

The institution ID (TCH-#### for teachers, STD-#### for students by
convention) is what people type on the login form. Student users are
linked to a Student profile; teacher users hold section allocations.
"""

from sqlalchemy import Column, Integer, Text, Enum
from sqlalchemy.orm import relationship
from rollbook.database import Base

ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
USER_ROLES = (ROLE_TEACHER, ROLE_STUDENT)


class User(Base):
    """
    SQLAlchemy model for the users table.

    Users are created at seed/onboarding time and are not modified by
    the attendance service afterwards.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Numeric user identifier")
    institution_id = Column(Text, nullable=False, unique=True,
                            doc="Human-assigned login identifier, e.g. TCH-1001")
    password_hash = Column(Text, nullable=False,
                           doc="passlib hash of the user's password")
    role = Column(Enum(*USER_ROLES, name="user_role"), nullable=False,
                  doc="teacher | student")
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    rank = Column(Text, nullable=True,
                  doc="Teacher rank, e.g. 'Assistant Teacher' (NULL for students)")

    # Relationships
    student_profile = relationship("Student", back_populates="user", uselist=False)
    allocations = relationship("TeacherAllocation", back_populates="teacher")

    def __repr__(self):
        return f"<User(id={self.id}, institution_id='{self.institution_id}', role='{self.role}')>"
