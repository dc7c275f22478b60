"""
Teacher API routes - allocations, class data and attendance marking.

Every route requires a teacher session. Class data and marking also
require the teacher to be allocated to the section.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from rollbook.database import get_db
from rollbook.logging_config import get_logger
from rollbook.routes.deps import require_teacher, get_broadcaster
from rollbook.services.access import TeacherIdentity
from rollbook.services.attendance import mark_attendance, DATE_PATTERN, MONTH_PATTERN
from rollbook.services.broadcast import LiveUpdateBroadcaster
from rollbook.services.reports import teacher_allocations, class_data

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class AttendanceMark(BaseModel):
    """One student's status in a marking batch."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: int = Field(..., alias="studentId")
    status: Literal["P", "A", "L", "E"]


class MarkAttendanceRequest(BaseModel):
    """Schema for a batch of marks for one section and date."""
    model_config = ConfigDict(populate_by_name=True)

    section_id: int = Field(..., alias="sectionId")
    date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    records: List[AttendanceMark] = Field(..., min_length=1)


@router.get("/api/teacher/allocations")
def get_allocations(
    db: Session = Depends(get_db),
    teacher: TeacherIdentity = Depends(require_teacher)
):
    """Sections the teacher is allocated to, grouped by grade."""
    return teacher_allocations(db, teacher)


@router.get("/api/teacher/class/{section_id}")
def get_class_data(
    section_id: int,
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
    db: Session = Depends(get_db),
    teacher: TeacherIdentity = Depends(require_teacher)
):
    """Roster of a section with attendance map and stats per student."""
    return class_data(db, teacher, section_id, month)


@router.post("/api/teacher/attendance")
def post_attendance(
    request: MarkAttendanceRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    teacher: TeacherIdentity = Depends(require_teacher),
    broadcaster: LiveUpdateBroadcaster = Depends(get_broadcaster)
):
    """
    Upsert a batch of marks, then tell every live viewer to re-fetch.

    updatedCount is the number of distinct students written; a student
    listed twice in one batch is stored once, with the later status.
    """
    updated = mark_attendance(
        db, request.section_id, request.date, request.records, teacher,
        notify=lambda section_id: broadcaster.notify(section_id, background_tasks)
    )
    return {"message": "Attendance marked successfully", "updatedCount": updated}
