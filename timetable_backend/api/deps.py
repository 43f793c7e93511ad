from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from timetable_backend.core.config import settings
from timetable_backend.core.security import decode_token
from timetable_backend.core.tenancy import set_current_tenant_id


bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Caller identity taken from the platform-issued token (users live in the auth service)."""

    user_id: uuid.UUID
    username: str
    role: str
    tenant_id: uuid.UUID | None


def _extract_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    if creds is not None and creds.credentials:
        return creds.credentials
    cookie_token = request.cookies.get("access_token")
    return cookie_token or None


def _parse_uuid(value) -> uuid.UUID | None:
    if value in (None, ""):
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    cached = getattr(request.state, "principal", None)
    if isinstance(cached, Principal):
        return cached

    token = _extract_token(request, creds)
    if not token:
        raise HTTPException(status_code=401, detail="NOT_AUTHENTICATED")
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    user_id = _parse_uuid(payload.get("sub"))
    if user_id is None:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    principal = Principal(
        user_id=user_id,
        username=str(payload.get("username") or ""),
        role=str(payload.get("role") or "").upper(),
        tenant_id=_parse_uuid(payload.get("tenant_id")),
    )
    request.state.principal = principal
    return principal


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != "ADMIN":
        raise HTTPException(status_code=403, detail="NOT_AUTHORIZED")
    return principal


def get_tenant_id(principal: Principal = Depends(get_current_principal)) -> uuid.UUID | None:
    """Return the tenant_id used to scope data.

    - shared mode: returns None (no scoping)
    - per_user mode: the token's tenant_id if set, else the user id
    - per_tenant mode: the token's tenant_id (required)
    """

    mode = (settings.tenant_mode or "per_tenant").strip().lower()
    if mode == "shared":
        set_current_tenant_id(None)
        return None
    if mode == "per_tenant":
        if principal.tenant_id is None:
            raise HTTPException(status_code=403, detail="TENANT_NOT_SET")
        set_current_tenant_id(principal.tenant_id)
        return principal.tenant_id
    resolved = principal.tenant_id or principal.user_id
    set_current_tenant_id(resolved)
    return resolved
