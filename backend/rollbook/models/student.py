"""
Student model - links a student User to their Section.

Roll numbers are unique within a section; the same roll number can be
reused in another section.
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from rollbook.database import Base


class Student(Base):
    """
    SQLAlchemy model for the students table.

    One-to-one with User (user_id is unique). Attendance records hang off
    the student id, not the user id.
    """
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Student profile identifier (referenced by attendance)")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True,
                     doc="The student's login identity")
    roll_no = Column(Integer, nullable=False,
                     doc="Roll number, unique within the section")
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)

    # Relationships
    user = relationship("User", back_populates="student_profile")
    section = relationship("Section", back_populates="students")
    attendance_records = relationship("Attendance", back_populates="student")

    __table_args__ = (
        UniqueConstraint("section_id", "roll_no", name="uq_students_section_roll_no"),
        Index("ix_students_section_id", "section_id"),
    )

    def __repr__(self):
        return f"<Student(id={self.id}, user={self.user_id}, section={self.section_id}, roll_no={self.roll_no})>"
