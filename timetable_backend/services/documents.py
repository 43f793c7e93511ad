"""Typed forms of the two JSON documents the scheduler persists.

``timetable_structures.config``::

    {"schemaVersion": 1,
     "periods": [{"id", "name", "startTime": "HH:MM", "endTime": "HH:MM", "kind": "CLASS"|"BREAK"}],
     "workingDays": ["Monday", ...]}

``classrooms.timetable``::

    {"Monday": {"<periodId>": {"subject": "...", "teacherId": "..."}}}

Config documents written before ``schemaVersion`` existed (version 0) used ``type``
instead of ``kind`` and could omit ``workingDays``; they are migrated on read.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from timetable_backend.core.config import WEEK_DAYS
from timetable_backend.core.errors import PersistenceError


CURRENT_SCHEMA_VERSION = 1

_LEGACY_WORKING_DAYS = WEEK_DAYS[:5]


class PeriodKind(str, Enum):
    CLASS = "CLASS"
    BREAK = "BREAK"


class PeriodDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    kind: PeriodKind = PeriodKind.CLASS

    @property
    def is_break(self) -> bool:
        return self.kind is PeriodKind.BREAK


class StructureConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, alias="schemaVersion")
    periods: list[PeriodDocument] = Field(default_factory=list)
    working_days: list[str] = Field(default_factory=list, alias="workingDays")

    def period(self, period_id: str) -> PeriodDocument | None:
        for p in self.periods:
            if p.id == period_id:
                return p
        return None

    def period_ids(self) -> list[str]:
        return [p.id for p in self.periods]

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SlotAssignment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str = ""
    teacher_id: str = Field(default="", alias="teacherId")

    @property
    def is_empty(self) -> bool:
        return not self.subject and not self.teacher_id

    def to_document(self) -> dict[str, str]:
        return {"subject": self.subject, "teacherId": self.teacher_id}


def normalize_day(value: str | None) -> str | None:
    """Map "monday", "MON", "Mon" ... to the canonical "Monday"; None if unknown."""

    v = (value or "").strip().lower()
    if not v:
        return None
    for day in WEEK_DAYS:
        if v == day.lower() or v == day[:3].lower():
            return day
    return None


def migrate_config_document(raw: dict[str, Any] | None) -> dict[str, Any]:
    doc = dict(raw or {})
    version = int(doc.get("schemaVersion") or 0)

    if version > CURRENT_SCHEMA_VERSION:
        raise PersistenceError(
            f"Structure config has schemaVersion {version}; this build reads up to {CURRENT_SCHEMA_VERSION}",
            code="UNSUPPORTED_SCHEMA_VERSION",
        )

    if version == 0:
        periods = []
        for p in doc.get("periods") or []:
            p = dict(p)
            kind = p.pop("type", None)
            p.setdefault("kind", kind or PeriodKind.CLASS.value)
            periods.append(p)
        doc["periods"] = periods
        if doc.get("workingDays") is None:
            doc["workingDays"] = list(_LEGACY_WORKING_DAYS)
        doc["schemaVersion"] = CURRENT_SCHEMA_VERSION

    return doc


def load_structure_config(raw: dict[str, Any] | None) -> StructureConfig:
    try:
        return StructureConfig.model_validate(migrate_config_document(raw))
    except PydanticValidationError as exc:
        raise PersistenceError("Stored structure config is unreadable", code="CORRUPT_STRUCTURE_CONFIG") from exc


def empty_grid(working_days: list[str]) -> dict[str, dict[str, dict[str, str]]]:
    return {day: {} for day in working_days}


def read_cell(grid: dict[str, Any] | None, day: str, period_id: str) -> SlotAssignment:
    raw = ((grid or {}).get(day) or {}).get(period_id)
    if not raw:
        return SlotAssignment()
    return SlotAssignment.model_validate(raw)


def with_cell(
    grid: dict[str, Any] | None,
    day: str,
    period_id: str,
    assignment: SlotAssignment,
) -> dict[str, dict[str, dict[str, str]]]:
    """Return a copy of ``grid`` with one cell upserted; an empty assignment removes the cell."""

    out = {d: dict(cells or {}) for d, cells in (grid or {}).items()}
    day_cells = out.setdefault(day, {})
    if assignment.is_empty:
        day_cells.pop(period_id, None)
    else:
        day_cells[period_id] = assignment.to_document()
    return out
