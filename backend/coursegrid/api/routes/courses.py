from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursegrid.api.deps import get_current_user, get_db, require_roles
from coursegrid.models.course import Course
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.course import CourseCreate, CourseOut
from coursegrid.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[CourseOut])
def list_courses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.code.asc())).scalars())


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> CourseOut:
    existing = db.execute(select(Course).where(Course.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    course = Course(**payload.model_dump())
    db.add(course)
    db.flush()
    log_activity(db, user=current_user, action="course.create", entity_type="course", entity_id=course.id)
    db.commit()
    db.refresh(course)
    return course
