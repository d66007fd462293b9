"""Rebuild the stored weekly time slot catalog from the configured grid.

Run:
  PYTHONPATH=backend python scripts/regenerate_timeslots.py [--dry-run]
"""

from __future__ import annotations

import argparse

from coursegrid.core.config import get_settings
from coursegrid.core.logging import setup_logging
from coursegrid.db.bootstrap import ensure_runtime_schema_compatibility
from coursegrid.db.session import SessionLocal
from coursegrid.services.slot_catalog import regenerate_catalog
from coursegrid.services.time_grid import generate_grid, get_grid_policy


def main() -> int:
    parser = argparse.ArgumentParser(description="Regenerate the time slot catalog.")
    parser.add_argument("--dry-run", action="store_true", help="print the grid without saving it")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(environment=settings.environment, level=settings.log_level)
    policy = get_grid_policy()

    if args.dry_run:
        for slot in generate_grid(policy):
            print(slot.label)
        return 0

    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        catalog = regenerate_catalog(session, policy)

    print(f"Time slot catalog version {catalog.version}: {catalog.slot_count} slots")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
