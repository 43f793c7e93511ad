from __future__ import annotations

from timetable_backend.models import Classroom
from timetable_backend.services import conflict_detector

from conftest import OTHER_TENANT_ID, TENANT_ID


def _room(db, name, grid, *, tenant_id=TENANT_ID):
    classroom = Classroom(tenant_id=tenant_id, name=name, timetable=grid)
    db.add(classroom)
    db.commit()
    return classroom


def _check(db, teacher_id, day="Monday", period_id="P1", *, exclude=None, tenant_id=TENANT_ID):
    return conflict_detector.check(
        db,
        teacher_id=teacher_id,
        day=day,
        period_id=period_id,
        exclude_classroom_id=exclude,
        tenant_id=tenant_id,
    )


def test_free_teacher_is_available(db):
    _room(db, "Grade 1A", {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}})
    assert _check(db, "t-2").available is True
    assert _check(db, "t-1", period_id="P2").available is True
    assert _check(db, "t-1", day="Tuesday").available is True


def test_busy_teacher_reports_the_classroom(db):
    room = _room(db, "Grade 1A", {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}})

    result = _check(db, "t-1")

    assert result.available is False
    assert result.conflicting_classroom_name == "Grade 1A"
    assert result.conflicting_classroom_id == room.id


def test_excluded_classroom_is_ignored(db):
    room = _room(db, "Grade 1A", {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}})
    assert _check(db, "t-1", exclude=room.id).available is True


def test_empty_teacher_id_is_always_available(db):
    _room(db, "Grade 1A", {"Monday": {"P1": {"subject": "Library", "teacherId": ""}}})
    assert _check(db, "").available is True
    assert _check(db, "   ").available is True


def test_first_classroom_by_name_wins(db):
    cell = {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}}
    _room(db, "Grade 3C", cell)
    _room(db, "Grade 1A", cell)

    assert _check(db, "t-1").conflicting_classroom_name == "Grade 1A"


def test_unscheduled_and_foreign_classrooms_are_skipped(db):
    _room(db, "No grid", None)
    _room(db, "Elsewhere", {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}}, tenant_id=OTHER_TENANT_ID)

    assert _check(db, "t-1").available is True
    assert _check(db, "t-1", tenant_id=OTHER_TENANT_ID).conflicting_classroom_name == "Elsewhere"


def test_matching_is_by_period_id_only(db):
    # Overlapping wall-clock times under different period ids are not a clash.
    _room(db, "Grade 1A", {"Monday": {"P1": {"subject": "Math", "teacherId": "t-1"}}})
    assert _check(db, "t-1", period_id="period-1").available is True
