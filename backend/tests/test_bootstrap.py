import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from coursegrid.db import bootstrap
from coursegrid.db.session import build_engine
from coursegrid.services.slot_catalog import get_catalog


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_semesters_closed_at_column", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda bind: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_bootstrap_creates_schema_and_seeds_time_slots():
    engine = build_engine("sqlite+pysqlite://", poolclass=StaticPool)

    bootstrap.ensure_runtime_schema_compatibility(engine)

    table_names = set(inspect(engine).get_table_names())
    assert set(bootstrap.REQUIRED_COLUMNS) <= table_names
    with Session(bind=engine) as db:
        catalog = get_catalog(db)
        assert catalog is not None
        assert catalog.slot_count == 55

    # Running again must not bump the catalog.
    bootstrap.ensure_runtime_schema_compatibility(engine)
    with Session(bind=engine) as db:
        assert get_catalog(db).version == 1
    engine.dispose()
