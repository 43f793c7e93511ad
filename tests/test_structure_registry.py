from __future__ import annotations

import uuid

import pytest

from timetable_backend.core.errors import NotFoundError, ValidationError
from timetable_backend.models import TimetableStructure
from timetable_backend.schemas.structure import PeriodIn, StructureIn
from timetable_backend.services import assignment_coordinator, structure_registry
from timetable_backend.services.documents import PeriodKind

from conftest import OTHER_TENANT_ID, TENANT_ID, WEEKDAYS, primary_timings


def test_create_structure_persists_versioned_document(db):
    view = structure_registry.create_structure(db, payload=primary_timings(), tenant_id=TENANT_ID)

    stored = db.get(TimetableStructure, view.structure.id)
    assert stored.name == "Primary Timings"
    assert stored.tenant_id == TENANT_ID
    assert stored.config["schemaVersion"] == 1
    assert [p["id"] for p in stored.config["periods"]] == ["P1", "BRK", "P2"]
    assert stored.config["workingDays"] == WEEKDAYS
    assert view.period_count == 3
    assert view.assigned_classroom_count == 0


@pytest.mark.parametrize("name", ["", "   "])
def test_create_requires_a_name(db, name):
    payload = primary_timings()
    payload.name = name
    with pytest.raises(ValidationError) as exc_info:
        structure_registry.create_structure(db, payload=payload, tenant_id=TENANT_ID)
    assert exc_info.value.code == "STRUCTURE_NAME_REQUIRED"
    assert db.query(TimetableStructure).count() == 0


@pytest.mark.parametrize("missing", ["name", "start_time", "end_time"])
def test_period_fields_are_required(db, missing):
    fields = {"id": "P1", "name": "Period 1", "start_time": "09:00", "end_time": "09:45"}
    fields[missing] = ""
    payload = StructureIn(name="Broken", periods=[PeriodIn(**fields)], working_days=["Monday"])

    with pytest.raises(ValidationError) as exc_info:
        structure_registry.create_structure(db, payload=payload, tenant_id=TENANT_ID)
    assert exc_info.value.code == "PERIOD_FIELD_REQUIRED"
    assert exc_info.value.field == f"periods[0].{missing}"


@pytest.mark.parametrize(
    "start, end, code",
    [
        ("9:00", "09:45", "INVALID_TIME"),
        ("09:00", "24:00", "INVALID_TIME"),
        ("09:45", "09:00", "INVALID_TIME_RANGE"),
        ("09:00", "09:00", "INVALID_TIME_RANGE"),
    ],
)
def test_period_times_are_validated(start, end, code):
    payload = StructureIn(
        name="Bad times",
        periods=[PeriodIn(name="Period 1", start_time=start, end_time=end)],
        working_days=["Monday"],
    )
    with pytest.raises(ValidationError) as exc_info:
        structure_registry.build_config(payload)
    assert exc_info.value.code == code


def test_missing_period_ids_are_generated_and_unique():
    payload = StructureIn(
        name="Generated",
        periods=[
            PeriodIn(name="Period 1", start_time="09:00", end_time="09:45"),
            PeriodIn(name="Period 2", start_time="10:00", end_time="10:45"),
        ],
        working_days=["Mon"],
    )
    config = structure_registry.build_config(payload)

    ids = config.period_ids()
    assert len(ids) == 2
    assert all(ids)
    assert ids[0] != ids[1]
    assert config.working_days == ["Monday"]


def test_duplicate_period_ids_and_days_are_rejected():
    dup_period = primary_timings()
    dup_period.periods[2].id = "P1"
    with pytest.raises(ValidationError) as exc_info:
        structure_registry.build_config(dup_period)
    assert exc_info.value.code == "DUPLICATE_PERIOD_ID"

    dup_day = primary_timings()
    dup_day.working_days = ["Monday", "mon"]
    with pytest.raises(ValidationError) as exc_info:
        structure_registry.build_config(dup_day)
    assert exc_info.value.code == "DUPLICATE_WORKING_DAY"

    bad_day = primary_timings()
    bad_day.working_days = ["Someday"]
    with pytest.raises(ValidationError) as exc_info:
        structure_registry.build_config(bad_day)
    assert exc_info.value.code == "INVALID_WORKING_DAY"


def test_update_replaces_definition_without_touching_schedules(db, primary_structure, make_classroom):
    classroom = make_classroom("Grade 1A")
    assignment_coordinator.assign_structure(db, classroom.id, primary_structure.id, tenant_id=TENANT_ID)
    assignment_coordinator.set_slot(
        db, classroom.id, "Monday", "P2", subject="Math", teacher_id="teacher-1", tenant_id=TENANT_ID
    )
    version_before = classroom.timetable_version

    payload = StructureIn(
        name="Primary Timings (winter)",
        periods=[
            PeriodIn(id="P1", name="Period 1", start_time="09:30", end_time="10:15"),
            PeriodIn(id="P3", name="Period 3", start_time="10:15", end_time="11:00"),
        ],
        working_days=WEEKDAYS,
    )
    view = structure_registry.update_structure(db, primary_structure.id, payload=payload, tenant_id=TENANT_ID)

    assert view.structure.id == primary_structure.id
    assert view.structure.name == "Primary Timings (winter)"
    assert view.config.period_ids() == ["P1", "P3"]
    assert view.assigned_classroom_count == 1

    db.refresh(classroom)
    assert classroom.timetable_version == version_before
    assert classroom.timetable["Monday"]["P2"] == {"subject": "Math", "teacherId": "teacher-1"}

    schedule = assignment_coordinator.get_schedule(db, classroom.id, tenant_id=TENANT_ID)
    assert schedule.orphaned_slots == [("Monday", "P2")]
    assert set(schedule.grid["Monday"]) == {"P1", "P3"}


def test_update_unknown_structure_is_not_found(db):
    with pytest.raises(NotFoundError):
        structure_registry.update_structure(db, uuid.uuid4(), payload=primary_timings(), tenant_id=TENANT_ID)


def test_list_reports_counts_and_is_tenant_scoped(db, primary_structure, make_classroom):
    structure_registry.create_structure(db, payload=primary_timings("Secondary Timings"), tenant_id=TENANT_ID)
    structure_registry.create_structure(db, payload=primary_timings("Elsewhere"), tenant_id=OTHER_TENANT_ID)

    for name in ("Grade 1A", "Grade 1B"):
        classroom = make_classroom(name)
        assignment_coordinator.assign_structure(db, classroom.id, primary_structure.id, tenant_id=TENANT_ID)

    views = structure_registry.list_structures(db, tenant_id=TENANT_ID)

    assert [v.structure.name for v in views] == ["Primary Timings", "Secondary Timings"]
    assert [v.assigned_classroom_count for v in views] == [2, 0]
    assert [v.period_count for v in views] == [3, 3]


def test_structures_of_other_tenants_are_invisible(db):
    foreign = structure_registry.create_structure(db, payload=primary_timings(), tenant_id=OTHER_TENANT_ID)
    with pytest.raises(NotFoundError):
        structure_registry.describe_structure(db, foreign.structure.id, tenant_id=TENANT_ID)


def test_delete_is_a_dry_run_until_confirmed(db, primary_structure, make_classroom):
    rooms = [make_classroom(name) for name in ("Grade 1A", "Grade 1B", "Grade 1C")]
    for room in rooms:
        assignment_coordinator.assign_structure(db, room.id, primary_structure.id, tenant_id=TENANT_ID)
    assignment_coordinator.set_slot(
        db, rooms[0].id, "Monday", "P1", subject="Math", teacher_id="teacher-1", tenant_id=TENANT_ID
    )

    report, deleted = structure_registry.delete_structure(db, primary_structure.id, tenant_id=TENANT_ID)
    assert deleted is False
    assert report.affected_classrooms == 3
    assert db.get(TimetableStructure, primary_structure.id) is not None

    report, deleted = structure_registry.delete_structure(
        db, primary_structure.id, tenant_id=TENANT_ID, confirmed=True
    )
    assert deleted is True
    assert report.affected_classrooms == 3

    db.expire_all()
    assert db.get(TimetableStructure, primary_structure.id) is None
    for room in rooms:
        db.refresh(room)
        assert room.timetable_structure_id is None
        assert room.timetable is None

    schedule = assignment_coordinator.get_schedule(db, rooms[0].id, tenant_id=TENANT_ID)
    assert schedule.structure_id is None
    assert schedule.grid == {}


def test_plan_delete_with_no_classrooms(db, primary_structure):
    report = structure_registry.plan_delete(db, primary_structure.id, tenant_id=TENANT_ID)
    assert report.affected_classrooms == 0
    assert report.structure_id == primary_structure.id


def test_default_template():
    template = structure_registry.default_template()
    assert [(p.name, p.start_time, p.end_time, p.kind) for p in template.periods] == [
        ("Period 1", "09:00", "09:45", PeriodKind.CLASS),
        ("Break", "09:45", "10:00", PeriodKind.BREAK),
        ("Period 2", "10:00", "10:45", PeriodKind.CLASS),
    ]
    assert template.working_days == WEEKDAYS
