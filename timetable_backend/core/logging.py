from __future__ import annotations

import logging
import logging.handlers

from timetable_backend.core.config import PACKAGE_DIR


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Third-party loggers and the level they are held at (None: follow the app level).
_THIRD_PARTY_LEVELS: dict[str, int | None] = {
    "uvicorn": None,
    "uvicorn.error": None,
    "uvicorn.access": None,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
}


def _scheduler_file_handler(formatter: logging.Formatter) -> logging.Handler:
    logs_dir = PACKAGE_DIR.parent / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        logs_dir / "scheduler.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(*, environment: str) -> None:
    """Configure logging once per process.

    Development and tests log DEBUG to the console. Production logs INFO to the
    console and to ``logs/scheduler.log`` (rotated at 10 MB, five backups).
    """

    root = logging.getLogger()
    if root.handlers:
        return

    is_production = (environment or "development").strip().lower() == "production"
    level = logging.INFO if is_production else logging.DEBUG
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]
    if is_production:
        handlers.append(_scheduler_file_handler(formatter))

    logging.basicConfig(level=level, handlers=handlers)
    for name, pinned in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(pinned if pinned is not None else level)

    logging.getLogger("timetable_backend").debug("Logging configured (production=%s)", is_production)
