from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from timetable_backend.services.documents import read_cell
from timetable_backend.services.schedule_store import scheduled_classrooms


@dataclass(frozen=True)
class Availability:
    available: bool
    conflicting_classroom_name: str | None = None
    conflicting_classroom_id: uuid.UUID | None = None


def check(
    db: Session,
    *,
    teacher_id: str,
    day: str,
    period_id: str,
    exclude_classroom_id: uuid.UUID | None,
    tenant_id: uuid.UUID | None,
) -> Availability:
    """Is ``teacher_id`` free at (day, period_id) outside ``exclude_classroom_id``?

    Linear scan over the tenant's scheduled classrooms in name order; the first
    classroom holding the teacher in that cell wins. Period ids are compared
    verbatim, so classrooms on different structures only collide when the ids match.
    """

    teacher_id = (teacher_id or "").strip()
    if not teacher_id:
        return Availability(available=True)

    for classroom in scheduled_classrooms(db, tenant_id=tenant_id, exclude_classroom_id=exclude_classroom_id):
        if read_cell(classroom.timetable, day, period_id).teacher_id == teacher_id:
            return Availability(
                available=False,
                conflicting_classroom_name=classroom.name,
                conflicting_classroom_id=classroom.id,
            )

    return Availability(available=True)
