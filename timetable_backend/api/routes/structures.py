from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timetable_backend.api.deps import get_tenant_id, require_admin
from timetable_backend.core.database import get_db
from timetable_backend.schemas.structure import DeleteImpactOut, PeriodOut, StructureIn, StructureOut
from timetable_backend.services import structure_registry
from timetable_backend.services.documents import PeriodDocument, StructureConfig
from timetable_backend.services.structure_registry import ImpactReport, StructureView


router = APIRouter()


def periods_out(periods: list[PeriodDocument]) -> list[PeriodOut]:
    return [
        PeriodOut(id=p.id, name=p.name, start_time=p.start_time, end_time=p.end_time, kind=p.kind)
        for p in periods
    ]


def _structure_out(view: StructureView) -> StructureOut:
    s = view.structure
    return StructureOut(
        id=s.id,
        name=s.name,
        description=s.description,
        schema_version=view.config.schema_version,
        periods=periods_out(view.config.periods),
        working_days=list(view.config.working_days),
        period_count=view.period_count,
        assigned_classroom_count=view.assigned_classroom_count,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _impact_out(report: ImpactReport, *, deleted: bool) -> DeleteImpactOut:
    return DeleteImpactOut(
        structure_id=report.structure_id,
        affected_classrooms=report.affected_classrooms,
        deleted=deleted,
    )


@router.get("/", response_model=list[StructureOut])
def list_structures(
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> list[StructureOut]:
    return [_structure_out(v) for v in structure_registry.list_structures(db, tenant_id=tenant_id)]


@router.get("/template")
def structure_template(_admin=Depends(require_admin)) -> dict:
    template: StructureConfig = structure_registry.default_template()
    return {
        "periods": [p.model_dump(mode="json") for p in periods_out(template.periods)],
        "working_days": list(template.working_days),
    }


@router.post("/", response_model=StructureOut, status_code=201)
def create_structure(
    payload: StructureIn,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> StructureOut:
    return _structure_out(structure_registry.create_structure(db, payload=payload, tenant_id=tenant_id))


@router.get("/{structure_id}", response_model=StructureOut)
def get_structure(
    structure_id: uuid.UUID,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> StructureOut:
    return _structure_out(structure_registry.describe_structure(db, structure_id, tenant_id=tenant_id))


@router.put("/{structure_id}", response_model=StructureOut)
def update_structure(
    structure_id: uuid.UUID,
    payload: StructureIn,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> StructureOut:
    view = structure_registry.update_structure(db, structure_id, payload=payload, tenant_id=tenant_id)
    return _structure_out(view)


@router.get("/{structure_id}/delete-plan", response_model=DeleteImpactOut)
def plan_structure_delete(
    structure_id: uuid.UUID,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> DeleteImpactOut:
    return _impact_out(structure_registry.plan_delete(db, structure_id, tenant_id=tenant_id), deleted=False)


@router.delete("/{structure_id}", response_model=DeleteImpactOut)
def delete_structure(
    structure_id: uuid.UUID,
    confirmed: bool = Query(default=False),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> DeleteImpactOut:
    report, deleted = structure_registry.delete_structure(
        db,
        structure_id,
        tenant_id=tenant_id,
        confirmed=confirmed,
    )
    return _impact_out(report, deleted=deleted)
