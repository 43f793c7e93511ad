"""Read-only projections of schedule grids for parents and teachers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from timetable_backend.api.tenant import get_by_id
from timetable_backend.models.timetable_structure import TimetableStructure
from timetable_backend.services.directory import teacher_names
from timetable_backend.services.documents import PeriodDocument, StructureConfig, read_cell
from timetable_backend.services.schedule_store import get_classroom, materialize, scheduled_classrooms, structure_config_for
from timetable_backend.services.structure_registry import load_config


@dataclass(frozen=True)
class EnrichedSlot:
    subject: str
    teacher_id: str
    teacher_name: str | None


@dataclass(frozen=True)
class ClassroomTimetable:
    classroom_id: uuid.UUID
    classroom_name: str
    working_days: list[str]
    periods: list[PeriodDocument]
    grid: dict[str, dict[str, EnrichedSlot]]


@dataclass(frozen=True)
class AgendaItem:
    classroom_id: uuid.UUID
    classroom_name: str
    period_id: str
    period_name: str
    start_time: str
    end_time: str
    subject: str


def classroom_timetable(db: Session, classroom_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> ClassroomTimetable:
    """The classroom's grid with teacher display names filled in (parent-facing view)."""

    classroom = get_classroom(db, classroom_id, tenant_id=tenant_id)
    _, config = structure_config_for(db, classroom, tenant_id=tenant_id)
    schedule = materialize(classroom, config)

    ids = {cell.teacher_id for cells in schedule.grid.values() for cell in cells.values() if cell.teacher_id}
    names = teacher_names(db, ids, tenant_id=tenant_id)

    grid = {
        day: {
            pid: EnrichedSlot(subject=cell.subject, teacher_id=cell.teacher_id, teacher_name=names.get(cell.teacher_id))
            for pid, cell in cells.items()
        }
        for day, cells in schedule.grid.items()
    }
    return ClassroomTimetable(
        classroom_id=classroom.id,
        classroom_name=classroom.name,
        working_days=schedule.working_days,
        periods=list(config.periods) if config is not None else [],
        grid=grid,
    )


def teacher_agenda(db: Session, teacher_id: str, day: str, *, tenant_id: uuid.UUID | None) -> list[AgendaItem]:
    """Every cell ``teacher_id`` holds on ``day`` across classrooms, by start time.

    Cells whose period no longer exists in the classroom's structure are skipped.
    ``day`` must already be canonical ("Monday").
    """

    configs: dict[uuid.UUID, StructureConfig | None] = {}
    items: list[AgendaItem] = []

    for classroom in scheduled_classrooms(db, tenant_id=tenant_id):
        sid = classroom.timetable_structure_id
        if sid is None:
            continue
        if sid not in configs:
            structure = get_by_id(db, TimetableStructure, sid, tenant_id)
            configs[sid] = load_config(structure) if structure is not None else None
        config = configs[sid]
        if config is None or day not in config.working_days:
            continue

        for period in config.periods:
            if period.is_break:
                continue
            cell = read_cell(classroom.timetable, day, period.id)
            if cell.teacher_id != teacher_id:
                continue
            items.append(
                AgendaItem(
                    classroom_id=classroom.id,
                    classroom_name=classroom.name,
                    period_id=period.id,
                    period_name=period.name,
                    start_time=period.start_time,
                    end_time=period.end_time,
                    subject=cell.subject,
                )
            )

    items.sort(key=lambda i: (i.start_time, i.classroom_name))
    return items
