"""
Attendance model - one student's status for one calendar date.

This is the central mutable entity. The (student_id, date) pair is
unique: re-marking a student for the same date overwrites status,
marked_by and marked_at in place.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from rollbook.database import Base

STATUS_PRESENT = "P"
STATUS_ABSENT = "A"
STATUS_LATE = "L"
STATUS_EXCUSED = "E"
ATTENDANCE_STATUSES = (STATUS_PRESENT, STATUS_ABSENT, STATUS_LATE, STATUS_EXCUSED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Attendance(Base):
    """
    SQLAlchemy model for the attendance table.

    Dates are stored as opaque 'YYYY-MM-DD' strings; month filtering is a
    prefix match on 'YYYY-MM'.
    """
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    date = Column(Text, nullable=False, doc="Calendar date as YYYY-MM-DD")
    status = Column(Enum(*ATTENDANCE_STATUSES, name="attendance_status"), nullable=False,
                    doc="P (present) | A (absent) | L (late) | E (excused)")
    marked_by = Column(Integer, ForeignKey("users.id"), nullable=True,
                       doc="Teacher user who last marked this record")
    marked_at = Column(DateTime(timezone=True), default=utcnow,
                       doc="When this record was last marked")

    student = relationship("Student", back_populates="attendance_records")

    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
        Index("ix_attendance_date", "date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "date": self.date,
            "status": self.status,
            "markedBy": self.marked_by,
            "markedAt": self.marked_at.isoformat() if self.marked_at else None,
        }

    def __repr__(self):
        return f"<Attendance(student={self.student_id}, date='{self.date}', status='{self.status}')>"
