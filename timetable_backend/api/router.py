from __future__ import annotations

from fastapi import APIRouter, Depends

from timetable_backend.api.deps import require_admin
from timetable_backend.api.routes import availability, classrooms, structures, subjects, teachers


api_router = APIRouter()

# Tokens come from the platform's auth service; every scheduler route is admin-only.
_protected = [Depends(require_admin)]
api_router.include_router(structures.router, prefix="/structures", tags=["structures"], dependencies=_protected)
api_router.include_router(classrooms.router, prefix="/classrooms", tags=["classrooms"], dependencies=_protected)
api_router.include_router(teachers.router, prefix="/teachers", tags=["teachers"], dependencies=_protected)
api_router.include_router(subjects.router, prefix="/subjects", tags=["subjects"], dependencies=_protected)
api_router.include_router(availability.router, prefix="/availability", tags=["availability"], dependencies=_protected)
