from __future__ import annotations

from dataclasses import dataclass

import pytest
from sqlalchemy.exc import OperationalError

from rollbook.errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from rollbook.models import Attendance, TeacherAllocation, User
from rollbook.services import attendance as attendance_service
from rollbook.services.access import TeacherIdentity, identity_for_user
from rollbook.services.attendance import mark_attendance, section_attendance, student_attendance


@dataclass
class Mark:
    student_id: int
    status: str


def _rows(db, student_id: int, date: str) -> list[Attendance]:
    db.expire_all()
    return db.query(Attendance).filter(
        Attendance.student_id == student_id, Attendance.date == date
    ).all()


def test_first_mark_inserts_record(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    count = mark_attendance(db, section_1a.id, "2024-05-01", [Mark(student.id, "P")], ayesha)

    assert count == 1
    rows = _rows(db, student.id, "2024-05-01")
    assert len(rows) == 1
    assert rows[0].status == "P"
    assert rows[0].marked_by == ayesha.user_id
    assert rows[0].marked_at is not None


def test_same_mark_twice_keeps_one_record(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    for _ in range(2):
        mark_attendance(db, section_1a.id, "2024-05-01", [Mark(student.id, "L")], ayesha)

    rows = _rows(db, student.id, "2024-05-01")
    assert len(rows) == 1
    assert rows[0].status == "L"


def test_remark_overwrites_status_and_marker(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    mark_attendance(db, section_1a.id, "2024-05-01", [Mark(student.id, "P")], ayesha)
    first_marked_at = _rows(db, student.id, "2024-05-01")[0].marked_at

    # A second teacher allocated to the same section re-marks the student
    imran_user = db.query(User).filter(User.institution_id == "TCH-1002").one()
    db.add(TeacherAllocation(teacher_user_id=imran_user.id, grade_id=section_1a.grade_id,
                             section_id=section_1a.id))
    db.commit()
    imran = identity_for_user(db, imran_user)
    mark_attendance(db, section_1a.id, "2024-05-01", [Mark(student.id, "A")], imran)

    rows = _rows(db, student.id, "2024-05-01")
    assert len(rows) == 1
    assert rows[0].status == "A"
    assert rows[0].marked_by == imran.user_id
    assert rows[0].marked_at >= first_marked_at


def test_batch_of_k_students_writes_k_records(db, ayesha, section_1a, students_1a):
    marks = [Mark(s.id, status) for s, status in zip(students_1a, ["P", "A", "E"])]
    count = mark_attendance(db, section_1a.id, "2024-05-02", marks, ayesha)

    assert count == 3
    db.expire_all()
    assert len(section_attendance(db, section_1a.id)) == 3


def test_repeated_student_in_batch_keeps_last_status(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    count = mark_attendance(
        db, section_1a.id, "2024-05-03", [Mark(student.id, "P"), Mark(student.id, "L")], ayesha
    )
    assert count == 1
    assert [r.status for r in _rows(db, student.id, "2024-05-03")] == ["L"]


def test_notify_called_once_after_commit(db, ayesha, section_1a, students_1a):
    notified = []

    def notify(section_id):
        # Records must already be visible when listeners are told
        assert len(_rows(db, students_1a[0].id, "2024-05-04")) == 1
        notified.append(section_id)

    mark_attendance(db, section_1a.id, "2024-05-04", [Mark(students_1a[0].id, "P")], ayesha, notify=notify)
    assert notified == [section_1a.id]


def test_student_outside_section_rejects_whole_batch(db, imran, section_2a, students_1a):
    # 2-A has no students; every id in the batch is foreign
    with pytest.raises(ValidationError) as exc_info:
        mark_attendance(db, section_2a.id, "2024-05-01", [Mark(students_1a[0].id, "P")], imran)
    assert exc_info.value.field == "records.studentId"
    assert _rows(db, students_1a[0].id, "2024-05-01") == []


def test_unallocated_teacher_is_rejected(db, imran, section_1a, students_1a):
    notified = []
    with pytest.raises(AuthorizationError):
        mark_attendance(db, section_1a.id, "2024-05-01", [Mark(students_1a[0].id, "P")], imran,
                        notify=notified.append)
    assert notified == []
    assert _rows(db, students_1a[0].id, "2024-05-01") == []


def test_student_identity_cannot_mark(db, ali, section_1a, students_1a):
    notified = []
    with pytest.raises(AuthorizationError):
        mark_attendance(db, section_1a.id, "2024-05-01", [Mark(students_1a[0].id, "P")], ali,
                        notify=notified.append)
    assert notified == []
    assert _rows(db, students_1a[0].id, "2024-05-01") == []


def test_missing_section_is_not_found(db, ayesha, students_1a):
    teacher = TeacherIdentity(
        user_id=ayesha.user_id, institution_id="TCH-1001", first_name="Ayesha",
        last_name="Khan", section_ids=frozenset({999}),
    )
    with pytest.raises(NotFoundError):
        mark_attendance(db, 999, "2024-05-01", [Mark(students_1a[0].id, "P")], teacher)


@pytest.mark.parametrize("date", ["2024-5-1", "01-05-2024", "", "2024/05/01"])
def test_bad_date_is_rejected(db, ayesha, section_1a, students_1a, date):
    with pytest.raises(ValidationError) as exc_info:
        mark_attendance(db, section_1a.id, date, [Mark(students_1a[0].id, "P")], ayesha)
    assert exc_info.value.field == "date"


def test_bad_status_and_empty_batch_are_rejected(db, ayesha, section_1a, students_1a):
    with pytest.raises(ValidationError):
        mark_attendance(db, section_1a.id, "2024-05-01", [Mark(students_1a[0].id, "X")], ayesha)
    with pytest.raises(ValidationError):
        mark_attendance(db, section_1a.id, "2024-05-01", [], ayesha)


def test_failure_mid_batch_keeps_earlier_records(db, ayesha, section_1a, students_1a, monkeypatch):
    real_upsert = attendance_service._upsert_record
    calls = []

    def flaky_upsert(session, student_id, date, status, marked_by):
        calls.append(student_id)
        if len(calls) == 2:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        real_upsert(session, student_id, date, status, marked_by)

    monkeypatch.setattr(attendance_service, "_upsert_record", flaky_upsert)
    notified = []
    marks = [Mark(s.id, "P") for s in students_1a]

    with pytest.raises(PersistenceError):
        mark_attendance(db, section_1a.id, "2024-05-06", marks, ayesha, notify=notified.append)

    assert len(_rows(db, students_1a[0].id, "2024-05-06")) == 1
    assert _rows(db, students_1a[1].id, "2024-05-06") == []
    assert _rows(db, students_1a[2].id, "2024-05-06") == []
    assert notified == []


def test_select_then_write_fallback_keeps_one_record(db, ayesha, section_1a, students_1a, monkeypatch):
    monkeypatch.setattr(attendance_service, "_UPSERT_DIALECTS", {})
    student = students_1a[0]
    mark_attendance(db, section_1a.id, "2024-05-07", [Mark(student.id, "P")], ayesha)
    mark_attendance(db, section_1a.id, "2024-05-07", [Mark(student.id, "E")], ayesha)

    rows = _rows(db, student.id, "2024-05-07")
    assert len(rows) == 1
    assert rows[0].status == "E"


def test_month_filter_on_queries(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    mark_attendance(db, section_1a.id, "2024-03-15", [Mark(student.id, "P")], ayesha)
    mark_attendance(db, section_1a.id, "2024-04-02", [Mark(student.id, "A")], ayesha)
    db.expire_all()

    assert [r.date for r in student_attendance(db, student.id, "2024-03")] == ["2024-03-15"]
    assert [r.date for r in student_attendance(db, student.id, "2024-04")] == ["2024-04-02"]
    assert [r.date for r in student_attendance(db, student.id)] == ["2024-03-15", "2024-04-02"]
    assert len(section_attendance(db, section_1a.id, "2024-03")) == 1


def test_month_filter_is_a_literal_prefix(db, ayesha, section_1a, students_1a):
    student = students_1a[0]
    mark_attendance(db, section_1a.id, "2024-10-01", [Mark(student.id, "P")], ayesha)
    db.expire_all()

    assert [r.date for r in student_attendance(db, student.id, "2024-10")] == ["2024-10-01"]
    assert student_attendance(db, student.id, "2024-01") == []
    # LIKE wildcards in the month are matched literally
    assert student_attendance(db, student.id, "2024-%") == []
    assert student_attendance(db, student.id, "2024-1_") == []
    assert section_attendance(db, section_1a.id, "2024-%") == []


def test_marked_at_is_stored_as_timezone_aware_column():
    assert Attendance.__table__.c.marked_at.type.timezone is True
