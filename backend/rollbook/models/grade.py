"""
Grade and Section models - the school's cohort hierarchy.

A Grade (e.g. "Grade 1") owns one or more Sections (e.g. "1-A").
Students belong to exactly one Section.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from rollbook.database import Base


class Grade(Base):
    """SQLAlchemy model for the grades table."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, doc="Display name, e.g. 'Grade 1'")

    sections = relationship("Section", back_populates="grade")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    def __repr__(self):
        return f"<Grade(id={self.id}, name='{self.name}')>"


class Section(Base):
    """SQLAlchemy model for the sections table."""
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    grade_id = Column(Integer, ForeignKey("grades.id"), nullable=False,
                      doc="The grade this section subdivides")
    name = Column(Text, nullable=False, doc="Display name, e.g. '1-A'")

    grade = relationship("Grade", back_populates="sections")
    students = relationship("Student", back_populates="section")
    allocations = relationship("TeacherAllocation", back_populates="section")

    __table_args__ = (
        Index("ix_sections_grade_id", "grade_id"),
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "gradeId": self.grade_id, "name": self.name}

    def __repr__(self):
        return f"<Section(id={self.id}, grade={self.grade_id}, name='{self.name}')>"
