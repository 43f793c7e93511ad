from __future__ import annotations

import os
import uuid

# Settings are read at import time; point them at an in-memory database first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["TENANT_MODE"] = "per_tenant"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from timetable_backend.core.database import ENGINE, SessionLocal
from timetable_backend.core.security import create_access_token
from timetable_backend.main import app
from timetable_backend.models import Base, Classroom, StaffMember, Subject
from timetable_backend.schemas.structure import PeriodIn, StructureIn
from timetable_backend.services import structure_registry


TENANT_ID = uuid.UUID("6f0c7c0e-2f7b-4d55-9a43-0d5b8f1a2c01")
OTHER_TENANT_ID = uuid.UUID("a3c1d2e4-5b6f-4a70-8b91-c2d3e4f5a6b7")

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def primary_timings(name: str = "Primary Timings") -> StructureIn:
    return StructureIn(
        name=name,
        periods=[
            PeriodIn(id="P1", name="Period 1", start_time="09:00", end_time="09:45", kind="CLASS"),
            PeriodIn(id="BRK", name="Break", start_time="09:45", end_time="10:00", kind="BREAK"),
            PeriodIn(id="P2", name="Period 2", start_time="10:00", end_time="10:45", kind="CLASS"),
        ],
        working_days=WEEKDAYS,
    )


def auth_headers(tenant_id: uuid.UUID | None = TENANT_ID, role: str = "ADMIN") -> dict[str, str]:
    token = create_access_token(
        user_id=str(uuid.uuid4()),
        username="admin",
        role=role,
        tenant_id=str(tenant_id) if tenant_id is not None else None,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(ENGINE)
    yield
    Base.metadata.drop_all(ENGINE)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_classroom(db):
    def _make(name: str, *, tenant_id: uuid.UUID | None = TENANT_ID) -> Classroom:
        classroom = Classroom(tenant_id=tenant_id, name=name)
        db.add(classroom)
        db.commit()
        return classroom

    return _make


@pytest.fixture
def make_teacher(db):
    def _make(
        first_name: str,
        last_name: str = "",
        *,
        designation: str | None = "Teacher",
        subjects: str | None = None,
        is_active: bool = True,
        tenant_id: uuid.UUID | None = TENANT_ID,
    ) -> StaffMember:
        staff = StaffMember(
            tenant_id=tenant_id,
            first_name=first_name,
            last_name=last_name,
            designation=designation,
            subjects=subjects,
            is_active=is_active,
        )
        db.add(staff)
        db.commit()
        return staff

    return _make


@pytest.fixture
def make_subject(db):
    def _make(name: str, *, tenant_id: uuid.UUID | None = TENANT_ID) -> Subject:
        subject = Subject(tenant_id=tenant_id, name=name)
        db.add(subject)
        db.commit()
        return subject

    return _make


@pytest.fixture
def primary_structure(db):
    return structure_registry.create_structure(db, payload=primary_timings(), tenant_id=TENANT_ID).structure
