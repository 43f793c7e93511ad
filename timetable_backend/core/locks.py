from __future__ import annotations

import hashlib
import threading
import uuid
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.orm import Session


# Non-Postgres engines (local runs, tests): a fixed set of striped locks. Distinct keys
# may share a stripe, which only serializes more; only one stripe is held at a time.
LOCAL_LOCK_STRIPES = 64
_local_locks = tuple(threading.Lock() for _ in range(LOCAL_LOCK_STRIPES))


def slot_lock_key(tenant_id: uuid.UUID | None, day: str, period_id: str) -> str:
    return f"{tenant_id or 'shared'}:{day}:{period_id}"


def _advisory_key(key: str) -> int:
    # pg_advisory_xact_lock takes a signed bigint.
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def local_lock_for(key: str) -> threading.Lock:
    return _local_locks[_advisory_key(key) % LOCAL_LOCK_STRIPES]


@contextmanager
def slot_lock(db: Session, *, tenant_id: uuid.UUID | None, day: str, period_id: str) -> Iterator[None]:
    """Serialize availability check + cell write for one (tenant, day, period).

    On PostgreSQL this takes a transaction-scoped advisory lock, released when the
    caller commits or rolls back, so it holds across worker processes. Other engines
    fall back to an in-process lock that only covers a single process; the caller
    must finish its transaction inside the ``with`` block.
    """

    key = slot_lock_key(tenant_id, day, period_id)
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(:k)"), {"k": _advisory_key(key)})
        yield
        return

    with local_lock_for(key):
        yield
