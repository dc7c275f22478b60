"""
Read-side views over attendance: teacher allocations, section class
data, and a student's own report. All statistics come from
services.aggregation so teacher and student screens always agree.
"""

from collections import defaultdict
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from rollbook.errors import NotFoundError
from rollbook.models.allocation import TeacherAllocation
from rollbook.models.grade import Grade, Section
from rollbook.models.student import Student
from rollbook.models.user import ROLE_TEACHER, ROLE_STUDENT
from rollbook.services.access import (
    Identity, require_role, require_section_access
)
from rollbook.services.aggregation import compute_stats, attendance_map
from rollbook.services.attendance import (
    section_attendance, student_attendance, validate_month
)


def teacher_allocations(db: Session, identity: Identity) -> List[dict]:
    """A teacher's allocations grouped by grade."""
    require_role(identity, ROLE_TEACHER)

    allocations = db.query(TeacherAllocation).options(
        joinedload(TeacherAllocation.grade),
        joinedload(TeacherAllocation.section)
    ).filter(
        TeacherAllocation.teacher_user_id == identity.user_id
    ).order_by(TeacherAllocation.grade_id, TeacherAllocation.section_id).all()

    grouped = {}
    for allocation in allocations:
        entry = grouped.setdefault(allocation.grade.id, {
            "gradeId": allocation.grade.id,
            "gradeName": allocation.grade.name,
            "sections": []
        })
        entry["sections"].append({"id": allocation.section.id, "name": allocation.section.name})
    return list(grouped.values())


def class_data(db: Session, identity: Identity, section_id: int,
               month: Optional[str] = None) -> dict:
    """
    Roster of a section with each student's date -> status map and stats.

    Raises AuthorizationError if the teacher is not allocated to the
    section, and NotFoundError if the section or its grade is missing.
    """
    require_section_access(identity, section_id)
    validate_month(month)

    section = db.get(Section, section_id)
    if not section:
        raise NotFoundError("Section not found")
    grade = db.get(Grade, section.grade_id)
    if not grade:
        raise NotFoundError("Grade not found")

    students = db.query(Student).options(joinedload(Student.user)).filter(
        Student.section_id == section_id
    ).order_by(Student.roll_no).all()

    by_student = defaultdict(list)
    for record in section_attendance(db, section_id, month):
        by_student[record.student_id].append(record)

    roster = []
    for student in students:
        if not student.user:
            continue
        records = by_student.get(student.id, [])
        stats = compute_stats(records)
        roster.append({
            "id": student.id,
            "rollNo": student.roll_no,
            "userId": student.user.id,
            "firstName": student.user.first_name,
            "lastName": student.user.last_name,
            "attendance": attendance_map(records),
            "stats": stats
        })

    return {
        "section": section.to_dict(),
        "grade": grade.to_dict(),
        "students": roster
    }


def student_report(db: Session, identity: Identity, month: Optional[str] = None) -> dict:
    """The logged-in student's own records and stats."""
    require_role(identity, ROLE_STUDENT)
    validate_month(month)

    student = db.query(Student).options(
        joinedload(Student.user),
        joinedload(Student.section).joinedload(Section.grade)
    ).filter(Student.user_id == identity.user_id).first()

    if not student or not student.section or not student.section.grade:
        raise NotFoundError("Student profile not found")

    records = student_attendance(db, student.id, month)

    return {
        "student": {
            "firstName": student.user.first_name,
            "lastName": student.user.last_name,
            "rollNo": student.roll_no,
            "sectionName": student.section.name,
            "gradeName": student.section.grade.name
        },
        "attendance": [r.to_dict() for r in records],
        "stats": compute_stats(records)
    }
