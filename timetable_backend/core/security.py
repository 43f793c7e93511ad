from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from timetable_backend.core.config import settings


def create_access_token(*, user_id: str, username: str, role: str, tenant_id: str | None) -> str:
    """Mint a token in the platform's format (dev tooling and tests; production tokens come from auth)."""

    now = datetime.now(timezone.utc)
    expires_minutes = int(settings.access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": user_id,
        "tenant_id": tenant_id,
        "username": username,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
