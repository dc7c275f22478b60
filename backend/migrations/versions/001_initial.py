"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2024-05-01

Creates all database tables for Rollbook:
- users: Teacher and student login identities
- grades / sections: The cohort hierarchy
- students: Student profiles (roll number unique per section)
- teacher_allocations: Teacher -> grade+section assignments
- attendance: One status per student per date

The (student_id, date) unique constraint on attendance is the conflict
target of the attendance upsert.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('teacher', 'student', name='user_role')
attendance_status = sa.Enum('P', 'A', 'L', 'E', name='attendance_status')


def upgrade() -> None:
    # ── Users Table ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('institution_id', sa.Text(), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('rank', sa.Text(), nullable=True),
    )

    # ── Grades & Sections ─────────────────────────────────────
    op.create_table(
        'grades',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
    )
    op.create_table(
        'sections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('grade_id', sa.Integer(), sa.ForeignKey('grades.id'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
    )
    op.create_index('ix_sections_grade_id', 'sections', ['grade_id'])

    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'),
                  nullable=False, unique=True),
        sa.Column('roll_no', sa.Integer(), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id'), nullable=False),
        sa.UniqueConstraint('section_id', 'roll_no', name='uq_students_section_roll_no'),
    )
    op.create_index('ix_students_section_id', 'students', ['section_id'])

    # ── Teacher Allocations Table ─────────────────────────────
    op.create_table(
        'teacher_allocations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('teacher_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('grade_id', sa.Integer(), sa.ForeignKey('grades.id'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id'), nullable=False),
        sa.UniqueConstraint('teacher_user_id', 'section_id',
                            name='uq_allocations_teacher_section'),
    )
    op.create_index('ix_allocations_teacher_user_id', 'teacher_allocations', ['teacher_user_id'])

    # ── Attendance Table ──────────────────────────────────────
    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('marked_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('marked_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('student_id', 'date', name='uq_attendance_student_date'),
    )
    op.create_index('ix_attendance_date', 'attendance', ['date'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_attendance_date', table_name='attendance')
    op.drop_table('attendance')
    op.drop_index('ix_allocations_teacher_user_id', table_name='teacher_allocations')
    op.drop_table('teacher_allocations')
    op.drop_index('ix_students_section_id', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_sections_grade_id', table_name='sections')
    op.drop_table('sections')
    op.drop_table('grades')
    op.drop_table('users')
    attendance_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
