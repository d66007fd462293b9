from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from coursegrid import models  # noqa: F401
from coursegrid.core.config import get_settings
from coursegrid.db.base import Base
from coursegrid.db.session import engine as default_engine
from coursegrid.services.slot_catalog import ensure_catalog

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role"},
    "courses": {"id", "code", "credits"},
    "semesters": {"id", "academic_year", "semester_number", "end_date", "closed_at"},
    "sections": {"id", "course_id", "instructor_id", "semester_id", "capacity"},
    "section_meetings": {"id", "section_id", "day_of_week", "start_time", "end_time"},
    "assignments": {"id", "student_id", "section_id", "status"},
    "grades": {"id", "assignment_id", "numeric_grade", "letter_grade", "points", "is_placeholder"},
    "time_slots": {"id", "catalog_version", "day_of_week", "start_time", "end_time"},
    "time_slot_catalog": {"id", "version", "slot_count"},
}


def _ensure_semesters_closed_at_column(bind: Engine) -> None:
    with bind.begin() as connection:
        inspector = inspect(connection)
        if "semesters" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("semesters")}
        if "closed_at" in column_names:
            return
        column_type = "TIMESTAMP WITH TIME ZONE" if connection.dialect.name == "postgresql" else "DATETIME"
        connection.execute(text(f"ALTER TABLE semesters ADD COLUMN closed_at {column_type}"))


def _assert_required_columns(bind: Engine) -> None:
    with bind.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def _seed_time_slots(bind: Engine) -> None:
    with Session(bind=bind, expire_on_commit=False) as db:
        catalog = ensure_catalog(db)
        logger.info("Time slot catalog ready: version=%s slots=%s", catalog.version, catalog.slot_count)


def ensure_runtime_schema_compatibility(bind: Engine | None = None) -> None:
    bind = bind or default_engine
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=bind)
        _ensure_semesters_closed_at_column(bind)
        _assert_required_columns(bind)
        if get_settings().grid_seed_on_startup:
            _seed_time_slots(bind)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
