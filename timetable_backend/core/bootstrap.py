from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from timetable_backend.core.database import ENGINE
from timetable_backend.models import Base


logger = logging.getLogger(__name__)


def ensure_schema(engine: Engine | None = None) -> None:
    """Create the scheduler's tables if they are missing.

    Idempotent: safe to run on every startup. Tables owned by other modules
    (classrooms, staff, subjects) are only created when absent, which is the case for
    local runs and tests.
    """

    engine = engine or ENGINE
    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn, checkfirst=True)
    logger.debug("Schema ensured on %s", engine.url.render_as_string(hide_password=True))
