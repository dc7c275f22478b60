"""
Attendance Upsert Service - marks a batch of students for one date.

For every (student_id, date) pair in a batch there is exactly one
attendance row afterwards, holding the latest submitted status:
- no row yet: insert one
- row exists: overwrite status, marked_by and marked_at

The write is a single INSERT ... ON CONFLICT (student_id, date) DO UPDATE
statement on SQLite and PostgreSQL, so two teachers marking the same
student at the same moment cannot create duplicate rows; whichever write
lands last wins. Other dialects fall back to select-then-write, which has
the same last-write-wins outcome but a small race window.

Each record is committed on its own. If the database fails halfway
through a batch, the records before the failure stay committed and the
caller receives a PersistenceError. No broadcast happens in that case.
"""

import re
import time
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

from rollbook.errors import ValidationError, NotFoundError, PersistenceError
from rollbook.logging_config import get_logger, log_with_context
from rollbook.models.attendance import Attendance, ATTENDANCE_STATUSES, utcnow
from rollbook.models.grade import Section
from rollbook.models.student import Student
from rollbook.services.access import TeacherIdentity, require_section_access

logger = get_logger("attendance")
db_logger = get_logger("db")

# ──────────────────────────────────────────────────────────────
# Input formats
# ──────────────────────────────────────────────────────────────
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
MONTH_PATTERN = r"^\d{4}-\d{2}$"

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def validate_date(date: str) -> str:
    if not isinstance(date, str) or not re.match(DATE_PATTERN, date):
        raise ValidationError("Format must be YYYY-MM-DD", field="date")
    return date


def validate_month(month: Optional[str]) -> Optional[str]:
    if month is None:
        return None
    if not isinstance(month, str) or not re.match(MONTH_PATTERN, month):
        raise ValidationError("Format must be YYYY-MM", field="month")
    return month


def _collapse(records: Iterable) -> dict:
    """student_id -> status, later entries for the same student win."""
    latest = {}
    for record in records:
        if record.status not in ATTENDANCE_STATUSES:
            raise ValidationError(
                "Status must be one of {}".format(", ".join(ATTENDANCE_STATUSES)),
                field="records.status")
        latest[record.student_id] = record.status
    return latest


def _upsert_record(db: Session, student_id: int, date: str, status: str, marked_by: int):
    marked_at = utcnow()
    insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)

    if insert is not None:
        stmt = insert(Attendance).values(
            student_id=student_id,
            date=date,
            status=status,
            marked_by=marked_by,
            marked_at=marked_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["student_id", "date"],
            set_={
                "status": stmt.excluded.status,
                "marked_by": stmt.excluded.marked_by,
                "marked_at": stmt.excluded.marked_at,
            },
        )
        db.execute(stmt)
        return

    existing = db.query(Attendance).filter(
        Attendance.student_id == student_id,
        Attendance.date == date
    ).first()
    if existing:
        existing.status = status
        existing.marked_by = marked_by
        existing.marked_at = marked_at
    else:
        db.add(Attendance(
            student_id=student_id,
            date=date,
            status=status,
            marked_by=marked_by,
            marked_at=marked_at,
        ))


def mark_attendance(db: Session, section_id: int, date: str, records: List,
                    teacher: TeacherIdentity,
                    notify: Optional[Callable[[int], None]] = None) -> int:
    """
    Upsert a batch of attendance marks for one section and date.

    Args:
        db: Database session
        section_id: Section the batch belongs to
        date: Calendar date, YYYY-MM-DD
        records: Objects with ``student_id`` and ``status`` attributes
        teacher: The marking teacher (recorded as marked_by)
        notify: Called with section_id once every record is committed

    Returns:
        Number of distinct students marked

    Raises:
        ValidationError: empty batch, bad date/status, or a student that is
            not enrolled in the section (nothing is written)
        AuthorizationError: the teacher is not allocated to the section
        NotFoundError: the section does not exist
        PersistenceError: the database failed mid-batch
    """
    start_time = time.time()

    validate_date(date)
    if not records:
        raise ValidationError("At least one attendance record is required", field="records")
    latest = _collapse(records)

    require_section_access(teacher, section_id)

    section = db.get(Section, section_id)
    if not section:
        raise NotFoundError("Section not found")

    enrolled = {
        row.id for row in db.query(Student.id).filter(
            Student.section_id == section_id,
            Student.id.in_(list(latest))
        )
    }
    outside = [student_id for student_id in latest if student_id not in enrolled]
    if outside:
        raise ValidationError(
            "Student {} is not enrolled in section {}".format(outside[0], section_id),
            field="records.studentId")

    written = 0
    for student_id, status in latest.items():
        try:
            _upsert_record(db, student_id, date, status, teacher.user_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log_with_context(db_logger, "ERROR",
                "Failed to mark student {} on {}: {}".format(student_id, date, e),
                context={"section_id": section_id, "student_id": student_id},
                extra_data={"written_before_failure": written})
            raise PersistenceError("Failed to save attendance") from e
        written += 1

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Marked {} students in section {} for {}".format(written, section_id, date),
        context={"section_id": section_id, "user_id": teacher.user_id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    if notify is not None:
        notify(section_id)
    return written


def section_attendance(db: Session, section_id: int, month: Optional[str] = None) -> List[Attendance]:
    """All attendance rows for a section's students, optionally for one month."""
    query = db.query(Attendance).join(Student, Attendance.student_id == Student.id).filter(
        Student.section_id == section_id
    )
    if month:
        query = query.filter(Attendance.date.startswith(month, autoescape=True))
    return query.order_by(Attendance.date, Attendance.student_id).all()


def student_attendance(db: Session, student_id: int, month: Optional[str] = None) -> List[Attendance]:
    """All attendance rows for one student, optionally for one month."""
    query = db.query(Attendance).filter(Attendance.student_id == student_id)
    if month:
        query = query.filter(Attendance.date.startswith(month, autoescape=True))
    return query.order_by(Attendance.date).all()
