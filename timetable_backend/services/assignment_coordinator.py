"""Entry points that mutate classroom schedules.

Every write goes through here so the structure keyspace, BREAK periods and teacher
double-booking are validated before anything is persisted.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from timetable_backend.core.database import commit_or_raise
from timetable_backend.core.errors import ConflictError, SchedulingError, ValidationError
from timetable_backend.core.locks import slot_lock
from timetable_backend.models.classroom import Classroom
from timetable_backend.services import conflict_detector
from timetable_backend.services.conflict_detector import Availability
from timetable_backend.services.documents import SlotAssignment, StructureConfig, normalize_day, read_cell
from timetable_backend.services.schedule_store import (
    Schedule,
    get_classroom,
    materialize,
    read_schedule,
    reset_grid,
    structure_config_for,
    write_cell,
)
from timetable_backend.services.structure_registry import get_structure, load_config


logger = logging.getLogger(__name__)


def assign_structure(
    db: Session,
    classroom_id: uuid.UUID,
    structure_id: uuid.UUID | None,
    *,
    tenant_id: uuid.UUID | None,
) -> Schedule:
    """Link a classroom to a structure (or detach it with ``None``).

    Re-assigning the current structure keeps the grid. Any other change discards
    the grid: old (day, period) keys are never reinterpreted under a new structure.
    """

    classroom = get_classroom(db, classroom_id, tenant_id=tenant_id, for_update=True)

    if structure_id is None:
        if classroom.timetable_structure_id is None and classroom.timetable is None:
            return materialize(classroom, None)
        previous = classroom.timetable_structure_id
        reset_grid(classroom, structure_id=None, config=None)
        commit_or_raise(db, action="structure unassign")
        logger.info("Detached classroom %s from structure %s", classroom.id, previous)
        return materialize(classroom, None)

    structure = get_structure(db, structure_id, tenant_id=tenant_id)
    config = load_config(structure)

    if classroom.timetable_structure_id == structure.id:
        return materialize(classroom, config)

    previous = classroom.timetable_structure_id
    reset_grid(classroom, structure_id=structure.id, config=config)
    commit_or_raise(db, action="structure assign")
    if previous is not None:
        logger.info("Classroom %s moved from structure %s to %s; grid cleared", classroom.id, previous, structure.id)
    else:
        logger.info("Classroom %s assigned structure %s", classroom.id, structure.id)
    return materialize(classroom, config)


def get_schedule(db: Session, classroom_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> Schedule:
    return read_schedule(db, classroom_id, tenant_id=tenant_id)


def _is_stray_cell(classroom: Classroom, config: StructureConfig, day: str, period_id: str) -> bool:
    """A stored, non-empty cell the current structure no longer accepts (removed day/period or BREAK)."""

    if read_cell(classroom.timetable, day, period_id).is_empty:
        return False
    period = config.period(period_id)
    return day not in config.working_days or period is None or period.is_break


def _resolve_slot(
    db: Session,
    classroom: Classroom,
    day: str,
    period_id: str,
    *,
    tenant_id: uuid.UUID | None,
    clearing: bool = False,
) -> tuple[StructureConfig, str]:
    _, config = structure_config_for(db, classroom, tenant_id=tenant_id)
    if config is None:
        raise ValidationError(
            f"Classroom {classroom.name} has no timetable structure assigned",
            code="NO_STRUCTURE_ASSIGNED",
            field="classroom_id",
        )

    canonical_day = normalize_day(day)
    # Cells stranded by a structure edit can only be cleared.
    if clearing and canonical_day is not None and _is_stray_cell(classroom, config, canonical_day, period_id):
        return config, canonical_day

    if canonical_day is None or canonical_day not in config.working_days:
        raise ValidationError(f"{day!r} is not a working day of this structure", code="DAY_NOT_IN_STRUCTURE", field="day")

    period = config.period(period_id)
    if period is None:
        raise ValidationError(
            f"Period {period_id!r} does not exist in this structure",
            code="PERIOD_NOT_IN_STRUCTURE",
            field="period_id",
        )
    if period.is_break:
        raise ValidationError(
            f"{period.name} is a break and cannot be assigned",
            code="BREAK_PERIOD_NOT_ASSIGNABLE",
            field="period_id",
        )
    return config, canonical_day


def set_slot(
    db: Session,
    classroom_id: uuid.UUID,
    day: str,
    period_id: str,
    *,
    subject: str,
    teacher_id: str,
    tenant_id: uuid.UUID | None,
    expected_version: int | None = None,
) -> Schedule:
    assignment = SlotAssignment(subject=(subject or "").strip(), teacher_id=(teacher_id or "").strip())
    lock_day = normalize_day(day) or (day or "").strip()

    # Validation, the availability check and the write must all see the same state:
    # the classroom is re-read under its row lock and the slot lock is held until the
    # transaction has committed or rolled back.
    with slot_lock(db, tenant_id=tenant_id, day=lock_day, period_id=period_id):
        try:
            classroom = get_classroom(db, classroom_id, tenant_id=tenant_id, for_update=True)
            config, day = _resolve_slot(
                db, classroom, day, period_id, tenant_id=tenant_id, clearing=assignment.is_empty
            )
            if assignment.teacher_id:
                availability = conflict_detector.check(
                    db,
                    teacher_id=assignment.teacher_id,
                    day=day,
                    period_id=period_id,
                    exclude_classroom_id=classroom_id,
                    tenant_id=tenant_id,
                )
                if not availability.available:
                    logger.info(
                        "Rejected slot write: teacher %s busy in %s at %s/%s",
                        assignment.teacher_id,
                        availability.conflicting_classroom_name,
                        day,
                        period_id,
                    )
                    raise ConflictError(
                        availability.conflicting_classroom_name or "another classroom",
                        teacher_id=assignment.teacher_id,
                        day=day,
                        period_id=period_id,
                    )

            classroom = write_cell(
                db,
                classroom_id,
                tenant_id=tenant_id,
                day=day,
                period_id=period_id,
                assignment=assignment,
                expected_version=expected_version,
            )
        except SchedulingError:
            db.rollback()
            raise
        commit_or_raise(db, action="slot write")

    logger.debug("Classroom %s %s/%s -> %r", classroom_id, day, period_id, assignment.to_document())
    return materialize(classroom, config)


def clear_slot(
    db: Session,
    classroom_id: uuid.UUID,
    day: str,
    period_id: str,
    *,
    tenant_id: uuid.UUID | None,
    expected_version: int | None = None,
) -> Schedule:
    return set_slot(
        db,
        classroom_id,
        day,
        period_id,
        subject="",
        teacher_id="",
        tenant_id=tenant_id,
        expected_version=expected_version,
    )


def check_availability(
    db: Session,
    *,
    teacher_id: str,
    day: str,
    period_id: str,
    exclude_classroom_id: uuid.UUID | None,
    tenant_id: uuid.UUID | None,
) -> Availability:
    canonical_day = normalize_day(day)
    if canonical_day is None:
        raise ValidationError(f"Unknown day {day!r}", code="INVALID_DAY", field="day")
    return conflict_detector.check(
        db,
        teacher_id=teacher_id,
        day=canonical_day,
        period_id=period_id,
        exclude_classroom_id=exclude_classroom_id,
        tenant_id=tenant_id,
    )
