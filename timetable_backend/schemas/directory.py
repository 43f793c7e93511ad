from __future__ import annotations

import uuid

from pydantic import BaseModel


class ClassroomOut(BaseModel):
    id: uuid.UUID
    name: str
    timetable_structure_id: uuid.UUID | None = None

    class Config:
        from_attributes = True


class TeacherOut(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    designation: str | None = None
    subjects: list[str]


class SubjectOut(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class SubjectSuggestionOut(BaseModel):
    teacher_id: uuid.UUID
    suggested: str | None = None
    subjects: list[str]
