"""
Demo data seeding.

Creates two teachers, two grades with three sections, teacher
allocations, and three students in section 1-A. Seeding is skipped
entirely when the first demo teacher (TCH-1001) already exists, so it is
safe to run on every startup.
"""

from sqlalchemy.orm import Session

from rollbook.logging_config import get_logger, log_with_context
from rollbook.models.allocation import TeacherAllocation
from rollbook.models.grade import Grade, Section
from rollbook.models.student import Student
from rollbook.models.user import User, ROLE_TEACHER, ROLE_STUDENT
from rollbook.services.security import get_password_hash

logger = get_logger("seed")

TEACHER_PASSWORD = "Teach@1234"
STUDENT_PASSWORD = "Stud@1234"

DEMO_TEACHERS = [
    {"institution_id": "TCH-1001", "first_name": "Ayesha", "last_name": "Khan", "rank": "Assistant Teacher"},
    {"institution_id": "TCH-1002", "first_name": "Imran", "last_name": "Ali", "rank": "Senior Teacher"},
]

DEMO_STUDENTS = [
    {"institution_id": "STD-2001", "first_name": "Ali", "last_name": "Khan", "roll_no": 1},
    {"institution_id": "STD-2002", "first_name": "Zara", "last_name": "Bibi", "roll_no": 2},
    {"institution_id": "STD-2003", "first_name": "Bilal", "last_name": "Ahmad", "roll_no": 3},
]


def seed_demo_data(db: Session) -> bool:
    """
    Insert the demo school if it is not there yet.

    Returns:
        True if data was created, False if the database was already seeded
    """
    if db.query(User).filter(User.institution_id == DEMO_TEACHERS[0]["institution_id"]).first():
        log_with_context(logger, "DEBUG", "Demo data already present, skipping seed")
        return False

    log_with_context(logger, "INFO", "Seeding database...")
    teacher_hash = get_password_hash(TEACHER_PASSWORD)
    student_hash = get_password_hash(STUDENT_PASSWORD)

    t1, t2 = [
        User(password_hash=teacher_hash, role=ROLE_TEACHER, **teacher)
        for teacher in DEMO_TEACHERS
    ]
    db.add_all([t1, t2])

    g1 = Grade(name="Grade 1")
    g2 = Grade(name="Grade 2")
    db.add_all([g1, g2])
    db.flush()

    s1a = Section(grade_id=g1.id, name="1-A")
    s1b = Section(grade_id=g1.id, name="1-B")
    s2a = Section(grade_id=g2.id, name="2-A")
    db.add_all([s1a, s1b, s2a])
    db.flush()

    db.add_all([
        TeacherAllocation(teacher_user_id=t1.id, grade_id=g1.id, section_id=s1a.id),
        TeacherAllocation(teacher_user_id=t1.id, grade_id=g1.id, section_id=s1b.id),
        TeacherAllocation(teacher_user_id=t2.id, grade_id=g2.id, section_id=s2a.id),
    ])

    for data in DEMO_STUDENTS:
        user = User(
            institution_id=data["institution_id"],
            password_hash=student_hash,
            role=ROLE_STUDENT,
            first_name=data["first_name"],
            last_name=data["last_name"],
        )
        db.add(user)
        db.flush()
        db.add(Student(user_id=user.id, roll_no=data["roll_no"], section_id=s1a.id))

    db.commit()
    log_with_context(logger, "INFO", "Seeding complete.",
        extra_data={"teachers": len(DEMO_TEACHERS), "students": len(DEMO_STUDENTS)})
    return True
