from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timetable_backend.api.deps import get_tenant_id, require_admin
from timetable_backend.core.database import get_db
from timetable_backend.core.errors import ValidationError
from timetable_backend.schemas.directory import SubjectSuggestionOut, TeacherOut
from timetable_backend.schemas.schedule import AgendaItemOut, TeacherAgendaOut
from timetable_backend.services import directory, timetable_views
from timetable_backend.services.documents import normalize_day


router = APIRouter()


@router.get("/", response_model=list[TeacherOut])
def list_teachers(
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> list[TeacherOut]:
    return [
        TeacherOut(
            id=s.id,
            first_name=s.first_name,
            last_name=s.last_name,
            full_name=directory.display_name(s),
            designation=s.designation,
            subjects=directory.split_subjects(s.subjects),
        )
        for s in directory.list_assignable_teachers(db, tenant_id=tenant_id)
    ]


@router.get("/{teacher_id}/subjects", response_model=SubjectSuggestionOut)
def teacher_subjects(
    teacher_id: uuid.UUID,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> SubjectSuggestionOut:
    suggested, subjects = directory.subject_suggestions(db, teacher_id, tenant_id=tenant_id)
    return SubjectSuggestionOut(teacher_id=teacher_id, suggested=suggested, subjects=subjects)


@router.get("/{teacher_id}/agenda", response_model=TeacherAgendaOut)
def teacher_agenda(
    teacher_id: str,
    day: str = Query(min_length=1),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: uuid.UUID | None = Depends(get_tenant_id),
) -> TeacherAgendaOut:
    canonical_day = normalize_day(day)
    if canonical_day is None:
        raise ValidationError(f"Unknown day {day!r}", code="INVALID_DAY", field="day")

    items = timetable_views.teacher_agenda(db, teacher_id, canonical_day, tenant_id=tenant_id)
    return TeacherAgendaOut(
        teacher_id=teacher_id,
        day=canonical_day,
        items=[
            AgendaItemOut(
                classroom_id=i.classroom_id,
                classroom_name=i.classroom_name,
                period_id=i.period_id,
                period_name=i.period_name,
                start_time=i.start_time,
                end_time=i.end_time,
                subject=i.subject,
            )
            for i in items
        ],
    )
