from __future__ import annotations

import logging
import logging.handlers

from coursegrid.core.config import BACKEND_DIR


def setup_logging(*, environment: str, level: str | None = None) -> None:
    """Configure root logging once.

    Development logs to the console at DEBUG; production adds a rotating
    file under ``backend/logs`` and defaults to INFO. An explicit ``level``
    wins over both.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    env = (environment or "development").lower().strip()
    if level:
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = logging.INFO if env == "production" else logging.DEBUG

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.setLevel(resolved)
    console.setFormatter(formatter)
    handlers.append(console)

    if env == "production":
        logs_dir = BACKEND_DIR / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "coursegrid.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(resolved)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=resolved, handlers=handlers)

    # SQL echo is far too chatty at DEBUG.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(resolved)
