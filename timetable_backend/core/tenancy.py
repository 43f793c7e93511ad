from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator


# Tenant resolved from the caller's token; read by the ORM flush hook in core/database.py.
current_tenant_id: ContextVar[uuid.UUID | None] = ContextVar("current_tenant_id", default=None)


def set_current_tenant_id(tenant_id: uuid.UUID | None) -> None:
    current_tenant_id.set(tenant_id)


def get_current_tenant_id() -> uuid.UUID | None:
    return current_tenant_id.get()


@contextmanager
def tenant_context(tenant_id: uuid.UUID | None) -> Iterator[None]:
    """Scope work outside a request (scripts, jobs) to one tenant."""

    token = current_tenant_id.set(tenant_id)
    try:
        yield
    finally:
        current_tenant_id.reset(token)
