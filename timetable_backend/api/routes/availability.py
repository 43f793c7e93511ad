from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timetable_backend.api.deps import get_tenant_id, require_admin
from timetable_backend.core.database import get_db
from timetable_backend.schemas.schedule import AvailabilityOut
from timetable_backend.services import assignment_coordinator


router = APIRouter()


@router.get("", response_model=AvailabilityOut)
def check_availability(
    teacher_id: str = Query(min_length=1),
    day: str = Query(min_length=1),
    period_id: str = Query(min_length=1),
    exclude_classroom_id: uuid.UUID | None = Query(default=None),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> AvailabilityOut:
    availability = assignment_coordinator.check_availability(
        db,
        teacher_id=teacher_id,
        day=day,
        period_id=period_id,
        exclude_classroom_id=exclude_classroom_id,
        tenant_id=tenant_id,
    )
    return AvailabilityOut(
        available=availability.available,
        conflicting_classroom_name=availability.conflicting_classroom_name,
    )
