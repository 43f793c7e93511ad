from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Text, Uuid
from sqlalchemy.sql import func

from timetable_backend.models.base import Base, JSONDocument


class TimetableStructure(Base):
    __tablename__ = "timetable_structures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    # {schemaVersion, periods: [...], workingDays: [...]}; see services/documents.py
    config = Column(JSONDocument, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
