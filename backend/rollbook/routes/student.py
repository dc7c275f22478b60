"""
Student API route - the logged-in student's own attendance.

The student is always taken from the session; no student id is ever
accepted from the request.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rollbook.database import get_db
from rollbook.routes.deps import require_student
from rollbook.services.access import StudentIdentity
from rollbook.services.attendance import MONTH_PATTERN
from rollbook.services.reports import student_report

router = APIRouter()


@router.get("/api/student/attendance")
def get_own_attendance(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
    db: Session = Depends(get_db),
    student: StudentIdentity = Depends(require_student)
):
    return student_report(db, student, month)
