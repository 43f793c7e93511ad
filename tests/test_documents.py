from __future__ import annotations

import pytest

from timetable_backend.core.errors import PersistenceError
from timetable_backend.services.documents import (
    CURRENT_SCHEMA_VERSION,
    PeriodKind,
    SlotAssignment,
    empty_grid,
    load_structure_config,
    normalize_day,
    read_cell,
    with_cell,
)
from timetable_backend.services.structure_registry import build_config

from conftest import primary_timings


def test_config_document_round_trip_keeps_order_and_fields():
    config = build_config(primary_timings())
    doc = config.to_document()

    assert doc["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert [p["id"] for p in doc["periods"]] == ["P1", "BRK", "P2"]
    assert doc["periods"][1] == {
        "id": "BRK",
        "name": "Break",
        "startTime": "09:45",
        "endTime": "10:00",
        "kind": "BREAK",
    }

    restored = load_structure_config(doc)
    assert restored == config
    assert restored.working_days == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def test_working_day_order_is_preserved():
    payload = primary_timings()
    payload.working_days = ["Friday", "Monday", "Wednesday"]
    restored = load_structure_config(build_config(payload).to_document())
    assert restored.working_days == ["Friday", "Monday", "Wednesday"]


def test_legacy_document_is_migrated_on_read():
    legacy = {
        "periods": [
            {"id": "p1", "name": "Period 1", "startTime": "09:00", "endTime": "09:45", "type": "CLASS"},
            {"id": "b1", "name": "Break", "startTime": "09:45", "endTime": "10:00", "type": "BREAK"},
            {"id": "p2", "name": "Period 2", "startTime": "10:00", "endTime": "10:45"},
        ],
    }

    config = load_structure_config(legacy)

    assert config.schema_version == CURRENT_SCHEMA_VERSION
    assert [p.kind for p in config.periods] == [PeriodKind.CLASS, PeriodKind.BREAK, PeriodKind.CLASS]
    assert config.working_days == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def test_future_schema_version_is_rejected():
    with pytest.raises(PersistenceError) as exc_info:
        load_structure_config({"schemaVersion": CURRENT_SCHEMA_VERSION + 1, "periods": [], "workingDays": []})
    assert exc_info.value.code == "UNSUPPORTED_SCHEMA_VERSION"


def test_unreadable_document_is_reported():
    with pytest.raises(PersistenceError) as exc_info:
        load_structure_config({"schemaVersion": 1, "periods": [{"id": "p1"}], "workingDays": []})
    assert exc_info.value.code == "CORRUPT_STRUCTURE_CONFIG"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Monday", "Monday"),
        ("monday", "Monday"),
        ("MON", "Monday"),
        (" thu ", "Thursday"),
        ("Funday", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_day(raw, expected):
    assert normalize_day(raw) == expected


def test_with_cell_upserts_one_cell_and_removes_empty_ones():
    grid = empty_grid(["Monday", "Tuesday"])
    grid = with_cell(grid, "Monday", "P1", SlotAssignment(subject="Math", teacher_id="t-1"))
    grid = with_cell(grid, "Monday", "P2", SlotAssignment(subject="Art", teacher_id="t-2"))

    assert grid["Monday"]["P1"] == {"subject": "Math", "teacherId": "t-1"}
    assert read_cell(grid, "Monday", "P2").teacher_id == "t-2"

    cleared = with_cell(grid, "Monday", "P1", SlotAssignment())
    assert "P1" not in cleared["Monday"]
    assert cleared["Monday"]["P2"] == {"subject": "Art", "teacherId": "t-2"}
    # The input grid is not mutated.
    assert "P1" in grid["Monday"]


def test_read_cell_defaults_to_empty_assignment():
    assert read_cell(None, "Monday", "P1").is_empty
    assert read_cell({"Monday": {}}, "Monday", "P1") == SlotAssignment()
