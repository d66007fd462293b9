"""Finalize grades for a semester.

Run:
  PYTHONPATH=backend python scripts/close_semester.py <semester_id>

Safe to run again after an interruption; already finalized assignments are
re-scored in place and no duplicate grade rows are created.
"""

from __future__ import annotations

import argparse
import logging

from coursegrid.core.config import get_settings
from coursegrid.core.exceptions import AppError
from coursegrid.core.logging import setup_logging
from coursegrid.db.bootstrap import ensure_runtime_schema_compatibility
from coursegrid.db.session import SessionLocal
from coursegrid.services.grading import close_semester

logger = logging.getLogger("coursegrid.scripts.close_semester")


def main() -> int:
    parser = argparse.ArgumentParser(description="Close a semester and finalize its grades.")
    parser.add_argument("semester_id", help="id of the semester to close")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(environment=settings.environment, level=settings.log_level)
    ensure_runtime_schema_compatibility()

    with SessionLocal() as session:
        try:
            summary = close_semester(session, args.semester_id)
        except AppError as exc:
            logger.error("Semester close failed: %s", exc.message)
            return 1

    print(f"Semester {summary.semester_id} closed.")
    print(f"  Processed: {summary.processed}")
    print(f"  Passed:    {summary.passed}")
    print(f"  Failed:    {summary.failed}")
    print(f"  Pending:   {summary.pending}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
