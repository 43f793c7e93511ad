"""Typed errors raised by the scheduling services.

Every error carries a machine-readable ``code`` and the HTTP status the API maps it
to. Services raise them before anything is persisted; the app's exception handler
renders them as ``{"code": ..., "message": ...}``.
"""

from __future__ import annotations

from typing import Any


class SchedulingError(Exception):
    status_code: int = 400
    default_code: str = "SCHEDULING_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(SchedulingError):
    """Malformed input: bad names, missing period fields, unknown day/period, BREAK writes."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None) -> None:
        super().__init__(message, code=code)
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.field is not None:
            payload["field"] = self.field
        return payload


class NotFoundError(SchedulingError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(SchedulingError):
    """The teacher already holds the same (day, period) in another classroom."""

    status_code = 409
    default_code = "TEACHER_UNAVAILABLE"

    def __init__(self, conflicting_classroom_name: str, *, teacher_id: str, day: str, period_id: str) -> None:
        super().__init__(
            f"Teacher {teacher_id} is already assigned to {conflicting_classroom_name} on {day} ({period_id})"
        )
        self.conflicting_classroom_name = conflicting_classroom_name
        self.teacher_id = teacher_id
        self.day = day
        self.period_id = period_id

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["conflicting_classroom_name"] = self.conflicting_classroom_name
        return payload


class StaleScheduleError(SchedulingError):
    """The classroom's schedule changed since the caller last read it."""

    status_code = 409
    default_code = "SCHEDULE_VERSION_MISMATCH"

    def __init__(self, *, expected_version: int, current_version: int) -> None:
        super().__init__(
            f"Schedule version is {current_version}, expected {expected_version}; re-read before retrying"
        )
        self.expected_version = expected_version
        self.current_version = current_version

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["current_version"] = self.current_version
        return payload


class PersistenceError(SchedulingError):
    status_code = 500
    default_code = "PERSISTENCE_ERROR"
