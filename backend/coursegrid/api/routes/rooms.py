from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursegrid.api.deps import get_current_user, get_db, require_roles
from coursegrid.models.room import Room
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.room import RoomCreate, RoomOut

router = APIRouter()


@router.get("/", response_model=list[RoomOut])
def list_rooms(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).order_by(Room.name.asc())).scalars())


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> RoomOut:
    existing = db.execute(select(Room).where(Room.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room name already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room
