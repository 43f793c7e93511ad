from __future__ import annotations

import uuid

from pydantic import AliasChoices, BaseModel, Field

from timetable_backend.schemas.structure import PeriodOut


class SlotAssignmentOut(BaseModel):
    subject: str = ""
    teacher_id: str = ""


class OrphanedSlotOut(BaseModel):
    day: str
    period_id: str


class ScheduleOut(BaseModel):
    classroom_id: uuid.UUID
    classroom_name: str
    structure_id: uuid.UUID | None = None
    version: int
    working_days: list[str]
    grid: dict[str, dict[str, SlotAssignmentOut]]
    orphaned_slots: list[OrphanedSlotOut] = Field(default_factory=list)


class AssignStructureIn(BaseModel):
    structure_id: uuid.UUID | None = Field(
        default=None,
        validation_alias=AliasChoices("structure_id", "structureId", "timetable_structure_id"),
    )


class SlotIn(BaseModel):
    subject: str = ""
    teacher_id: str = Field(default="", validation_alias=AliasChoices("teacher_id", "teacherId"))
    # Optimistic concurrency: reject the write if the schedule moved past this version.
    expected_version: int | None = Field(default=None, ge=0)


class AvailabilityOut(BaseModel):
    available: bool
    conflicting_classroom_name: str | None = None


class EnrichedSlotOut(SlotAssignmentOut):
    teacher_name: str | None = None


class ClassroomTimetableOut(BaseModel):
    classroom_id: uuid.UUID
    classroom_name: str
    working_days: list[str]
    periods: list[PeriodOut]
    grid: dict[str, dict[str, EnrichedSlotOut]]


class AgendaItemOut(BaseModel):
    classroom_id: uuid.UUID
    classroom_name: str
    period_id: str
    period_name: str
    start_time: str
    end_time: str
    subject: str


class TeacherAgendaOut(BaseModel):
    teacher_id: str
    day: str
    items: list[AgendaItemOut]
