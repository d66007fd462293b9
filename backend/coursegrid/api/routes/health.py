from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text

from coursegrid.db.bootstrap import REQUIRED_COLUMNS
from coursegrid.db.session import SessionLocal, engine
from coursegrid.services.slot_catalog import get_catalog

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None
    catalog_version: int | None = None
    catalog_slots = 0

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            inspector = inspect(connection)
            table_names = set(inspector.get_table_names())
            for table_name, columns in REQUIRED_COLUMNS.items():
                if table_name not in table_names:
                    missing_tables.append(table_name)
                    continue
                existing = {item["name"] for item in inspector.get_columns(table_name)}
                missing = sorted(columns - existing)
                if missing:
                    missing_columns[table_name] = missing
        if not missing_tables:
            with SessionLocal() as db:
                catalog = get_catalog(db)
                if catalog is not None:
                    catalog_version = catalog.version
                    catalog_slots = catalog.slot_count
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing_tables and not missing_columns
    catalog_ok = catalog_slots > 0
    ready = db_ok and schema_ok and catalog_ok

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "time_slots": {
            "ok": catalog_ok,
            "version": catalog_version,
            "slot_count": catalog_slots,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
