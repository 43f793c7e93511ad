"""Read-only access to the reference data other modules own: classrooms, staff, subjects."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from timetable_backend.api.tenant import get_by_id, where_tenant
from timetable_backend.core.config import settings
from timetable_backend.core.errors import NotFoundError
from timetable_backend.models.classroom import Classroom
from timetable_backend.models.staff_member import StaffMember
from timetable_backend.models.subject import Subject


def list_classrooms(db: Session, *, tenant_id: uuid.UUID | None) -> list[Classroom]:
    q = where_tenant(select(Classroom), Classroom, tenant_id).order_by(Classroom.name.asc())
    return list(db.execute(q).scalars().all())


def list_subjects(db: Session, *, tenant_id: uuid.UUID | None) -> list[Subject]:
    q = where_tenant(select(Subject), Subject, tenant_id).order_by(Subject.name.asc())
    return list(db.execute(q).scalars().all())


def list_assignable_teachers(db: Session, *, tenant_id: uuid.UUID | None) -> list[StaffMember]:
    """Active staff whose designation mentions the teacher keyword (case-insensitive)."""

    keyword = settings.teacher_designation_keyword
    q = (
        select(StaffMember)
        .where(StaffMember.is_active.is_(True))
        .where(func.lower(StaffMember.designation).contains(keyword))
        .order_by(StaffMember.first_name.asc(), StaffMember.last_name.asc())
    )
    q = where_tenant(q, StaffMember, tenant_id)
    return list(db.execute(q).scalars().all())


def get_staff_member(db: Session, staff_id: uuid.UUID, *, tenant_id: uuid.UUID | None) -> StaffMember:
    staff = get_by_id(db, StaffMember, staff_id, tenant_id)
    if staff is None:
        raise NotFoundError(f"Teacher {staff_id} not found", code="TEACHER_NOT_FOUND")
    return staff


def split_subjects(raw: str | None) -> list[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


def display_name(staff: StaffMember) -> str:
    return f"{staff.first_name} {staff.last_name}".strip()


def subject_suggestions(
    db: Session,
    staff_id: uuid.UUID,
    *,
    tenant_id: uuid.UUID | None,
) -> tuple[str | None, list[str]]:
    """The teacher's declared subjects; the first one is what the editor pre-fills."""

    subjects = split_subjects(get_staff_member(db, staff_id, tenant_id=tenant_id).subjects)
    return (subjects[0] if subjects else None), subjects


def teacher_names(db: Session, teacher_ids: set[str], *, tenant_id: uuid.UUID | None) -> dict[str, str]:
    """Map grid teacher ids to display names; ids that are not staff UUIDs are skipped."""

    wanted: dict[uuid.UUID, list[str]] = {}
    for tid in teacher_ids:
        try:
            wanted.setdefault(uuid.UUID(str(tid)), []).append(tid)
        except ValueError:
            continue
    if not wanted:
        return {}

    q = where_tenant(select(StaffMember).where(StaffMember.id.in_(list(wanted))), StaffMember, tenant_id)
    out: dict[str, str] = {}
    for staff in db.execute(q).scalars().all():
        for tid in wanted.get(staff.id, []):
            out[tid] = display_name(staff)
    return out
