"""
Demo Data Script - creates the demo school directly in the database.

Creates tables when running against SQLite, then inserts the demo
teachers, sections and students unless they already exist.

Usage:
    python seed_data.py                                  # Uses DATABASE_URL / .env
    DATABASE_URL=postgresql://... python seed_data.py    # Explicit database
"""

from rollbook.database import DATABASE_URL, SessionLocal, create_tables
from rollbook.logging_config import setup_logging
from rollbook.services.seed import (
    seed_demo_data, DEMO_TEACHERS, DEMO_STUDENTS, TEACHER_PASSWORD, STUDENT_PASSWORD
)

# Import all models so they are registered with Base.metadata
from rollbook.models import User, Grade, Section, Student, TeacherAllocation, Attendance  # noqa: F401


def main():
    setup_logging()

    if DATABASE_URL.startswith("sqlite"):
        create_tables()

    db = SessionLocal()
    try:
        created = seed_demo_data(db)
    finally:
        db.close()

    print("=" * 60)
    print("DEMO DATA")
    print("=" * 60)
    if not created:
        print("  Database already seeded, nothing to do.")
    for teacher in DEMO_TEACHERS:
        print(f"  {teacher['institution_id']}  {teacher['first_name']} {teacher['last_name']}"
              f"  ({teacher['rank']})  password: {TEACHER_PASSWORD}")
    for student in DEMO_STUDENTS:
        print(f"  {student['institution_id']}  {student['first_name']} {student['last_name']}"
              f"  (roll {student['roll_no']}, 1-A)  password: {STUDENT_PASSWORD}")
    print("=" * 60)


if __name__ == "__main__":
    main()
