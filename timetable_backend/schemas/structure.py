from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from timetable_backend.services.documents import PeriodKind


class PeriodIn(BaseModel):
    # Required fields are checked by the structure registry so the error names the field.
    id: str | None = None
    name: str | None = None
    start_time: str | None = Field(default=None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str | None = Field(default=None, validation_alias=AliasChoices("end_time", "endTime"))
    kind: PeriodKind = Field(default=PeriodKind.CLASS, validation_alias=AliasChoices("kind", "type"))


class StructureIn(BaseModel):
    name: str = ""
    description: str | None = None
    periods: list[PeriodIn] = Field(default_factory=list)
    working_days: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("working_days", "workingDays"),
    )


class PeriodOut(BaseModel):
    id: str
    name: str
    start_time: str
    end_time: str
    kind: PeriodKind


class StructureOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    schema_version: int
    periods: list[PeriodOut]
    working_days: list[str]
    period_count: int
    assigned_classroom_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeleteImpactOut(BaseModel):
    structure_id: uuid.UUID
    affected_classrooms: int
    deleted: bool = False
