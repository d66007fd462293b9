from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coursegrid.core.exceptions import StorageFailureError
from coursegrid.models.time_slot import TimeSlot, TimeSlotCatalog
from coursegrid.models.user import User
from coursegrid.services.audit import log_activity
from coursegrid.services.time_grid import GridPolicy, generate_grid, get_grid_policy

logger = logging.getLogger(__name__)

CATALOG_ROW_ID = 1


def get_catalog(db: Session) -> TimeSlotCatalog | None:
    return db.get(TimeSlotCatalog, CATALOG_ROW_ID)


def list_catalog_slots(db: Session) -> list[TimeSlot]:
    return list(db.execute(select(TimeSlot).order_by(TimeSlot.position.asc())).scalars())


def regenerate_catalog(
    db: Session,
    policy: GridPolicy | None = None,
    *,
    actor: User | None = None,
) -> TimeSlotCatalog:
    """Replace the stored slot catalog with a fresh generation.

    The delete, the inserts, the version bump and the audit row share one
    transaction, so readers see either the previous generation or the new one.
    """
    policy = policy or get_grid_policy()
    slots = generate_grid(policy)

    try:
        catalog = db.get(TimeSlotCatalog, CATALOG_ROW_ID, with_for_update=True)
        if catalog is None:
            catalog = TimeSlotCatalog(id=CATALOG_ROW_ID, version=0, slot_count=0, policy={})
            db.add(catalog)
        version = catalog.version + 1

        db.execute(delete(TimeSlot))
        db.add_all(
            TimeSlot(
                catalog_version=version,
                day_of_week=slot.day_of_week,
                start_time=slot.start_time,
                end_time=slot.end_time,
                label=slot.label,
                position=index,
            )
            for index, slot in enumerate(slots)
        )
        catalog.version = version
        catalog.slot_count = len(slots)
        catalog.policy = policy.snapshot()
        catalog.generated_at = datetime.now(timezone.utc)
        log_activity(
            db,
            user=actor,
            action="timeslots.regenerate",
            entity_type="time_slot_catalog",
            entity_id=str(catalog.id),
            details={"version": version, "slot_count": len(slots)},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Time slot catalog regeneration failed")
        raise StorageFailureError("time slot catalog regeneration") from exc

    logger.info("Time slot catalog regenerated: version=%s slots=%s", catalog.version, catalog.slot_count)
    return catalog


def ensure_catalog(db: Session, policy: GridPolicy | None = None) -> TimeSlotCatalog:
    catalog = get_catalog(db)
    if catalog is not None and catalog.slot_count > 0:
        return catalog
    return regenerate_catalog(db, policy)
