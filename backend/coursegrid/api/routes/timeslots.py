from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursegrid.api.deps import get_current_user, get_db, require_roles
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.time_slot import (
    SlotValidationOut,
    SlotValidationRequest,
    TimeSlotCatalogOut,
    TimeSlotOut,
)
from coursegrid.services.slot_catalog import ensure_catalog, list_catalog_slots, regenerate_catalog
from coursegrid.services.time_grid import validate_slot

router = APIRouter()


def _catalog_out(db: Session, catalog) -> TimeSlotCatalogOut:
    return TimeSlotCatalogOut(
        version=catalog.version,
        slot_count=catalog.slot_count,
        policy=catalog.policy,
        generated_at=catalog.generated_at,
        slots=[TimeSlotOut.model_validate(slot) for slot in list_catalog_slots(db)],
    )


@router.get("/", response_model=TimeSlotCatalogOut)
def list_timeslots(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> TimeSlotCatalogOut:
    return _catalog_out(db, ensure_catalog(db))


@router.post("/regenerate", response_model=TimeSlotCatalogOut)
def regenerate_timeslots(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimeSlotCatalogOut:
    catalog = regenerate_catalog(db, actor=current_user)
    return _catalog_out(db, catalog)


@router.post("/validate", response_model=SlotValidationOut)
def validate_timeslot(
    payload: SlotValidationRequest,
    current_user: User = Depends(get_current_user),
) -> SlotValidationOut:
    check = validate_slot(payload.day_of_week, payload.start_time, payload.end_time)
    return SlotValidationOut(valid=check.ok, rule=check.rule, message=check.message)
