from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timetable_backend.api.deps import get_tenant_id, require_admin
from timetable_backend.api.routes.structures import periods_out
from timetable_backend.core.database import get_db
from timetable_backend.schemas.directory import ClassroomOut
from timetable_backend.schemas.schedule import (
    AssignStructureIn,
    ClassroomTimetableOut,
    EnrichedSlotOut,
    OrphanedSlotOut,
    ScheduleOut,
    SlotAssignmentOut,
    SlotIn,
)
from timetable_backend.services import assignment_coordinator, directory, timetable_views
from timetable_backend.services.schedule_store import Schedule


router = APIRouter()


def _schedule_out(schedule: Schedule) -> ScheduleOut:
    return ScheduleOut(
        classroom_id=schedule.classroom_id,
        classroom_name=schedule.classroom_name,
        structure_id=schedule.structure_id,
        version=schedule.version,
        working_days=schedule.working_days,
        grid={
            day: {
                pid: SlotAssignmentOut(subject=cell.subject, teacher_id=cell.teacher_id)
                for pid, cell in cells.items()
            }
            for day, cells in schedule.grid.items()
        },
        orphaned_slots=[OrphanedSlotOut(day=d, period_id=p) for d, p in schedule.orphaned_slots],
    )


@router.get("/", response_model=list[ClassroomOut])
def list_classrooms(
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> list[ClassroomOut]:
    return directory.list_classrooms(db, tenant_id=tenant_id)


@router.put("/{classroom_id}/structure", response_model=ScheduleOut)
def assign_structure(
    classroom_id: uuid.UUID,
    payload: AssignStructureIn,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> ScheduleOut:
    schedule = assignment_coordinator.assign_structure(db, classroom_id, payload.structure_id, tenant_id=tenant_id)
    return _schedule_out(schedule)


@router.get("/{classroom_id}/schedule", response_model=ScheduleOut)
def get_schedule(
    classroom_id: uuid.UUID,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> ScheduleOut:
    return _schedule_out(assignment_coordinator.get_schedule(db, classroom_id, tenant_id=tenant_id))


@router.put("/{classroom_id}/schedule/{day}/{period_id}", response_model=ScheduleOut)
def set_slot(
    classroom_id: uuid.UUID,
    day: str,
    period_id: str,
    payload: SlotIn,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> ScheduleOut:
    schedule = assignment_coordinator.set_slot(
        db,
        classroom_id,
        day,
        period_id,
        subject=payload.subject,
        teacher_id=payload.teacher_id,
        tenant_id=tenant_id,
        expected_version=payload.expected_version,
    )
    return _schedule_out(schedule)


@router.delete("/{classroom_id}/schedule/{day}/{period_id}", response_model=ScheduleOut)
def clear_slot(
    classroom_id: uuid.UUID,
    day: str,
    period_id: str,
    expected_version: int | None = Query(default=None, ge=0),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> ScheduleOut:
    schedule = assignment_coordinator.clear_slot(
        db,
        classroom_id,
        day,
        period_id,
        tenant_id=tenant_id,
        expected_version=expected_version,
    )
    return _schedule_out(schedule)


@router.get("/{classroom_id}/timetable", response_model=ClassroomTimetableOut)
def get_classroom_timetable(
    classroom_id: uuid.UUID,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> ClassroomTimetableOut:
    view = timetable_views.classroom_timetable(db, classroom_id, tenant_id=tenant_id)
    return ClassroomTimetableOut(
        classroom_id=view.classroom_id,
        classroom_name=view.classroom_name,
        working_days=view.working_days,
        periods=periods_out(view.periods),
        grid={
            day: {
                pid: EnrichedSlotOut(subject=s.subject, teacher_id=s.teacher_id, teacher_name=s.teacher_name)
                for pid, s in cells.items()
            }
            for day, cells in view.grid.items()
        },
    )
