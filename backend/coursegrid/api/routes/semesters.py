from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from coursegrid.api.deps import get_current_user, get_db, require_roles
from coursegrid.models.semester import Semester
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.semester import SemesterCloseOut, SemesterCreate, SemesterOut
from coursegrid.services.grading import close_semester

router = APIRouter()


@router.get("/", response_model=list[SemesterOut])
def list_semesters(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[SemesterOut]:
    statement = select(Semester).order_by(Semester.academic_year.desc(), Semester.semester_number.desc())
    return list(db.execute(statement).scalars())


@router.post("/", response_model=SemesterOut, status_code=status.HTTP_201_CREATED)
def create_semester(
    payload: SemesterCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> SemesterOut:
    existing = db.execute(
        select(Semester).where(
            Semester.academic_year == payload.academic_year,
            Semester.semester_number == payload.semester_number,
        )
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Semester already exists")

    if payload.is_current:
        db.execute(update(Semester).values(is_current=False))
    semester = Semester(**payload.model_dump())
    db.add(semester)
    db.commit()
    db.refresh(semester)
    return semester


@router.post("/{semester_id}/close", response_model=SemesterCloseOut)
def close(
    semester_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> SemesterCloseOut:
    semester = db.get(Semester, semester_id)
    already_closed = semester is not None and semester.closed_at is not None
    summary = close_semester(db, semester_id, actor=current_user)
    return SemesterCloseOut(**summary.as_dict(), already_closed=already_closed)
