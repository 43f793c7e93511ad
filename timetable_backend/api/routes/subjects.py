from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timetable_backend.api.deps import get_tenant_id, require_admin
from timetable_backend.core.database import get_db
from timetable_backend.schemas.directory import SubjectOut
from timetable_backend.services import directory


router = APIRouter()


@router.get("/", response_model=list[SubjectOut])
def list_subjects(
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> list[SubjectOut]:
    return directory.list_subjects(db, tenant_id=tenant_id)
