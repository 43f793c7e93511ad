"""Per-classroom schedule grids.

The grid lives in ``classrooms.timetable``; ``classrooms.timetable_version`` is bumped
on every change and used as a compare-and-swap stamp for cell writes. Only the
assignment coordinator calls the mutating functions here.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from timetable_backend.api.tenant import get_by_id, where_tenant
from timetable_backend.core.errors import NotFoundError, StaleScheduleError
from timetable_backend.models.classroom import Classroom
from timetable_backend.models.timetable_structure import TimetableStructure
from timetable_backend.services.documents import (
    SlotAssignment,
    StructureConfig,
    empty_grid,
    read_cell,
    with_cell,
)
from timetable_backend.services.structure_registry import load_config


@dataclass(frozen=True)
class Schedule:
    classroom_id: uuid.UUID
    classroom_name: str
    structure_id: uuid.UUID | None
    version: int
    working_days: list[str]
    grid: dict[str, dict[str, SlotAssignment]]
    orphaned_slots: list[tuple[str, str]] = field(default_factory=list)

    def cell(self, day: str, period_id: str) -> SlotAssignment:
        return self.grid.get(day, {}).get(period_id, SlotAssignment())


def get_classroom(
    db: Session,
    classroom_id: uuid.UUID,
    *,
    tenant_id: uuid.UUID | None,
    for_update: bool = False,
) -> Classroom:
    classroom = get_by_id(db, Classroom, classroom_id, tenant_id, for_update=for_update)
    if classroom is None:
        raise NotFoundError(f"Classroom {classroom_id} not found", code="CLASSROOM_NOT_FOUND")
    return classroom


def structure_config_for(
    db: Session,
    classroom: Classroom,
    *,
    tenant_id: uuid.UUID | None,
) -> tuple[TimetableStructure | None, StructureConfig | None]:
    if classroom.timetable_structure_id is None:
        return None, None
    structure = get_by_id(db, TimetableStructure, classroom.timetable_structure_id, tenant_id)
    if structure is None:
        return None, None
    return structure, load_config(structure)


def materialize(classroom: Classroom, config: StructureConfig | None) -> Schedule:
    """Project the stored grid onto the structure's keyspace.

    Every working day x period appears; cells missing from storage are empty and
    BREAK periods always read empty. Stored cells whose day or period is no longer
    part of the structure, or whose period has since become a BREAK, are reported
    as orphaned and left out of the grid. Orphaned cells can be cleared through
    the assignment coordinator.
    """

    stored = classroom.timetable or {}
    if config is None:
        return Schedule(
            classroom_id=classroom.id,
            classroom_name=classroom.name,
            structure_id=None,
            version=int(classroom.timetable_version or 0),
            working_days=[],
            grid={},
        )

    period_ids = config.period_ids()
    break_ids = {p.id for p in config.periods if p.is_break}
    grid = {
        day: {pid: SlotAssignment() if pid in break_ids else read_cell(stored, day, pid) for pid in period_ids}
        for day in config.working_days
    }

    orphaned: list[tuple[str, str]] = []
    valid_days = set(config.working_days)
    assignable = set(period_ids) - break_ids
    for day, cells in stored.items():
        for pid, raw in (cells or {}).items():
            if day in valid_days and pid in assignable:
                continue
            if raw and not SlotAssignment.model_validate(raw).is_empty:
                orphaned.append((day, pid))

    return Schedule(
        classroom_id=classroom.id,
        classroom_name=classroom.name,
        structure_id=classroom.timetable_structure_id,
        version=int(classroom.timetable_version or 0),
        working_days=list(config.working_days),
        grid=grid,
        orphaned_slots=orphaned,
    )


def read_schedule(db: Session, classroom_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> Schedule:
    classroom = get_classroom(db, classroom_id, tenant_id=tenant_id)
    _, config = structure_config_for(db, classroom, tenant_id=tenant_id)
    return materialize(classroom, config)


def reset_grid(classroom: Classroom, *, structure_id: uuid.UUID | None, config: StructureConfig | None) -> None:
    """Point the classroom at ``structure_id`` with a fresh empty grid (or no grid when detached)."""

    classroom.timetable_structure_id = structure_id
    classroom.timetable = empty_grid(config.working_days) if config is not None else None
    classroom.timetable_version = int(classroom.timetable_version or 0) + 1


def write_cell(
    db: Session,
    classroom_id: uuid.UUID,
    *,
    tenant_id: uuid.UUID | None,
    day: str,
    period_id: str,
    assignment: SlotAssignment,
    expected_version: int | None = None,
) -> Classroom:
    """Upsert one (day, period) cell; other cells keep whatever is currently stored.

    The row is re-read under a row lock and replaced with a compare-and-swap on
    ``timetable_version``. The caller owns the transaction.
    """

    classroom = get_classroom(db, classroom_id, tenant_id=tenant_id, for_update=True)
    current = int(classroom.timetable_version or 0)
    if expected_version is not None and int(expected_version) != current:
        raise StaleScheduleError(expected_version=int(expected_version), current_version=current)

    grid = with_cell(classroom.timetable, day, period_id, assignment)
    stmt = (
        update(Classroom)
        .where(Classroom.id == classroom.id)
        .where(Classroom.timetable_version == current)
        .values(timetable=grid, timetable_version=current + 1)
        .execution_options(synchronize_session="fetch")
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        db.refresh(classroom)
        raise StaleScheduleError(expected_version=current, current_version=int(classroom.timetable_version or 0))

    db.refresh(classroom)
    return classroom


def scheduled_classrooms(
    db: Session,
    *,
    tenant_id: uuid.UUID | None,
    exclude_classroom_id: uuid.UUID | None = None,
) -> list[Classroom]:
    """Classrooms of the tenant that currently hold a schedule grid, by name."""

    q = select(Classroom).where(Classroom.timetable.is_not(None))
    if exclude_classroom_id is not None:
        q = q.where(Classroom.id != exclude_classroom_id)
    q = where_tenant(q, Classroom, tenant_id).order_by(Classroom.name.asc(), Classroom.id.asc())
    # Grids written by other sessions must be seen, not the cached copies.
    q = q.execution_options(populate_existing=True)
    return list(db.execute(q).scalars().all())
