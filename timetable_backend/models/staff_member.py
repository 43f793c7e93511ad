from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Text, Uuid
from sqlalchemy.sql import func

from timetable_backend.models.base import Base


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=True, index=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False, default="")
    designation = Column(Text, nullable=True)
    # Comma separated, e.g. "Mathematics, Physics"
    subjects = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
