"""
TeacherAllocation model - which teacher teaches which grade+section.

A teacher may hold many allocations and a section may have many
allocated teachers. Allocations drive the section ownership check.
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from rollbook.database import Base


class TeacherAllocation(Base):
    """SQLAlchemy model for the teacher_allocations table."""
    __tablename__ = "teacher_allocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    grade_id = Column(Integer, ForeignKey("grades.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)

    # Relationships
    teacher = relationship("User", back_populates="allocations")
    grade = relationship("Grade")
    section = relationship("Section", back_populates="allocations")

    __table_args__ = (
        UniqueConstraint("teacher_user_id", "section_id", name="uq_allocations_teacher_section"),
        Index("ix_allocations_teacher_user_id", "teacher_user_id"),
    )

    def __repr__(self):
        return f"<TeacherAllocation(teacher={self.teacher_user_id}, grade={self.grade_id}, section={self.section_id})>"
