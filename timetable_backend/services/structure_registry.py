"""Timetable structures: named, reusable sets of periods and working days."""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from timetable_backend.api.tenant import get_by_id, where_tenant
from timetable_backend.core.config import settings
from timetable_backend.core.database import commit_or_raise
from timetable_backend.core.errors import NotFoundError, ValidationError
from timetable_backend.models.classroom import Classroom
from timetable_backend.models.timetable_structure import TimetableStructure
from timetable_backend.schemas.structure import StructureIn
from timetable_backend.services.documents import (
    PeriodDocument,
    PeriodKind,
    StructureConfig,
    load_structure_config,
    normalize_day,
)


logger = logging.getLogger(__name__)


_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class StructureView:
    structure: TimetableStructure
    config: StructureConfig
    assigned_classroom_count: int

    @property
    def period_count(self) -> int:
        return len(self.config.periods)


@dataclass(frozen=True)
class ImpactReport:
    structure_id: uuid.UUID
    affected_classrooms: int


def _new_period_id() -> str:
    return uuid.uuid4().hex[:9]


def _clean(value: str | None) -> str:
    return (value or "").strip()


def build_config(payload: StructureIn) -> StructureConfig:
    """Validate editor input and turn it into a config document.

    Periods keep their order; ids are generated for periods that have none.
    """

    periods: list[PeriodDocument] = []
    seen_ids: set[str] = set()

    for idx, p in enumerate(payload.periods):
        for field in ("name", "start_time", "end_time"):
            if not _clean(getattr(p, field)):
                raise ValidationError(
                    f"Period #{idx + 1} is missing {field}",
                    code="PERIOD_FIELD_REQUIRED",
                    field=f"periods[{idx}].{field}",
                )

        start, end = _clean(p.start_time), _clean(p.end_time)
        for field, value in (("start_time", start), ("end_time", end)):
            if not _HHMM.match(value):
                raise ValidationError(
                    f"Period #{idx + 1} {field} must be HH:MM, got {value!r}",
                    code="INVALID_TIME",
                    field=f"periods[{idx}].{field}",
                )
        # Zero-padded HH:MM compares correctly as text.
        if end <= start:
            raise ValidationError(
                f"Period #{idx + 1} must end after it starts",
                code="INVALID_TIME_RANGE",
                field=f"periods[{idx}].end_time",
            )

        period_id = _clean(p.id) or _new_period_id()
        if period_id in seen_ids:
            raise ValidationError(
                f"Duplicate period id {period_id!r}",
                code="DUPLICATE_PERIOD_ID",
                field=f"periods[{idx}].id",
            )
        seen_ids.add(period_id)

        periods.append(
            PeriodDocument(
                id=period_id,
                name=_clean(p.name),
                start_time=start,
                end_time=end,
                kind=p.kind,
            )
        )

    working_days: list[str] = []
    for idx, raw_day in enumerate(payload.working_days):
        day = normalize_day(raw_day)
        if day is None:
            raise ValidationError(
                f"Unknown working day {raw_day!r}",
                code="INVALID_WORKING_DAY",
                field=f"working_days[{idx}]",
            )
        if day in working_days:
            raise ValidationError(
                f"Working day {day} listed twice",
                code="DUPLICATE_WORKING_DAY",
                field=f"working_days[{idx}]",
            )
        working_days.append(day)

    return StructureConfig(periods=periods, working_days=working_days)


def _require_name(payload: StructureIn) -> str:
    name = _clean(payload.name)
    if not name:
        raise ValidationError("Structure name is required", code="STRUCTURE_NAME_REQUIRED", field="name")
    return name


def get_structure(db: Session, structure_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> TimetableStructure:
    structure = get_by_id(db, TimetableStructure, structure_id, tenant_id)
    if structure is None:
        raise NotFoundError(f"Timetable structure {structure_id} not found", code="STRUCTURE_NOT_FOUND")
    return structure


def load_config(structure: TimetableStructure) -> StructureConfig:
    return load_structure_config(structure.config)


def _assigned_counts(db: Session, *, tenant_id: uuid.UUID | None) -> dict[uuid.UUID, int]:
    q = (
        select(Classroom.timetable_structure_id, func.count(Classroom.id))
        .where(Classroom.timetable_structure_id.is_not(None))
        .group_by(Classroom.timetable_structure_id)
    )
    q = where_tenant(q, Classroom, tenant_id)
    return {sid: int(n) for sid, n in db.execute(q).all()}


def count_assigned_classrooms(db: Session, structure_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> int:
    q = select(func.count(Classroom.id)).where(Classroom.timetable_structure_id == structure_id)
    q = where_tenant(q, Classroom, tenant_id)
    return int(db.execute(q).scalar_one())


def list_structures(db: Session, *, tenant_id: uuid.UUID | None) -> list[StructureView]:
    q = where_tenant(select(TimetableStructure), TimetableStructure, tenant_id).order_by(
        TimetableStructure.name.asc(), TimetableStructure.created_at.asc()
    )
    rows = db.execute(q).scalars().all()
    counts = _assigned_counts(db, tenant_id=tenant_id)
    return [
        StructureView(structure=s, config=load_config(s), assigned_classroom_count=counts.get(s.id, 0))
        for s in rows
    ]


def describe_structure(db: Session, structure_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> StructureView:
    structure = get_structure(db, structure_id, tenant_id=tenant_id)
    return StructureView(
        structure=structure,
        config=load_config(structure),
        assigned_classroom_count=count_assigned_classrooms(db, structure.id, tenant_id=tenant_id),
    )


def create_structure(db: Session, *, payload: StructureIn, tenant_id: uuid.UUID | None) -> StructureView:
    name = _require_name(payload)
    config = build_config(payload)

    structure = TimetableStructure(
        tenant_id=tenant_id,
        name=name,
        description=_clean(payload.description) or None,
        config=config.to_document(),
    )
    db.add(structure)
    commit_or_raise(db, action="structure create")
    db.refresh(structure)

    logger.info(
        "Created timetable structure %s (%r, periods=%d, days=%d)",
        structure.id,
        name,
        len(config.periods),
        len(config.working_days),
    )
    return StructureView(structure=structure, config=config, assigned_classroom_count=0)


def update_structure(
    db: Session,
    structure_id: uuid.UUID,
    *,
    payload: StructureIn,
    tenant_id: uuid.UUID | None,
) -> StructureView:
    """Replace name, description, periods and working days wholesale.

    Classroom schedules are left alone: cells keyed by period ids that no longer
    exist show up as orphaned slots when the schedule is read.
    """

    structure = get_structure(db, structure_id, tenant_id=tenant_id)
    name = _require_name(payload)
    config = build_config(payload)

    previous_ids = set(load_config(structure).period_ids())
    removed = previous_ids - set(config.period_ids())

    structure.name = name
    structure.description = _clean(payload.description) or None
    structure.config = config.to_document()
    commit_or_raise(db, action="structure update")
    db.refresh(structure)

    assigned = count_assigned_classrooms(db, structure.id, tenant_id=tenant_id)
    if removed and assigned:
        logger.info(
            "Structure %s dropped periods %s while assigned to %d classroom(s)",
            structure.id,
            sorted(removed),
            assigned,
        )
    return StructureView(structure=structure, config=config, assigned_classroom_count=assigned)


def plan_delete(db: Session, structure_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> ImpactReport:
    structure = get_structure(db, structure_id, tenant_id=tenant_id)
    return ImpactReport(
        structure_id=structure.id,
        affected_classrooms=count_assigned_classrooms(db, structure.id, tenant_id=tenant_id),
    )


def commit_delete(db: Session, structure_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> ImpactReport:
    """Detach every referencing classroom, clear its grid and delete the structure in one transaction."""

    structure = get_structure(db, structure_id, tenant_id=tenant_id)

    detach = (
        update(Classroom)
        .where(Classroom.timetable_structure_id == structure.id)
        .values(
            timetable_structure_id=None,
            timetable=None,
            timetable_version=Classroom.timetable_version + 1,
        )
        .execution_options(synchronize_session="fetch")
    )
    detach = where_tenant(detach, Classroom, tenant_id)
    affected = db.execute(detach).rowcount or 0

    db.delete(structure)
    commit_or_raise(db, action="structure delete")

    logger.info("Deleted timetable structure %s; detached %d classroom(s)", structure_id, affected)
    return ImpactReport(structure_id=structure_id, affected_classrooms=int(affected))


def delete_structure(
    db: Session,
    structure_id: uuid.UUID,
    *,
    tenant_id: uuid.UUID | None,
    confirmed: bool = False,
) -> tuple[ImpactReport, bool]:
    """Dry run unless ``confirmed``; returns the impact report and whether the delete happened."""

    if not confirmed:
        return plan_delete(db, structure_id, tenant_id=tenant_id), False
    return commit_delete(db, structure_id, tenant_id=tenant_id), True


def default_template() -> StructureConfig:
    """Starter timings offered to the editor before a school defines its own."""

    return StructureConfig(
        periods=[
            PeriodDocument(id="p1", name="Period 1", start_time="09:00", end_time="09:45", kind=PeriodKind.CLASS),
            PeriodDocument(id="b1", name="Break", start_time="09:45", end_time="10:00", kind=PeriodKind.BREAK),
            PeriodDocument(id="p2", name="Period 2", start_time="10:00", end_time="10:45", kind=PeriodKind.CLASS),
        ],
        working_days=list(settings.default_working_days),
    )
