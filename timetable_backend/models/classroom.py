from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.sql import func

from timetable_backend.models.base import Base, JSONDocument


class Classroom(Base):
    """Classroom row from the academics module; the scheduler owns the timetable columns."""

    __tablename__ = "classrooms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=True, index=True)
    name = Column(Text, nullable=False)

    timetable_structure_id = Column(
        Uuid,
        ForeignKey("timetable_structures.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # {day: {periodId: {subject, teacherId}}}; NULL until a structure is first assigned.
    timetable = Column(JSONDocument, nullable=True)
    timetable_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("timetable_version >= 0", name="ck_classrooms_timetable_version"),
    )
