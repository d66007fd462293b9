from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursegrid.api.deps import get_current_user, get_db, require_roles
from coursegrid.models.section import Section
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.section import InstructorAssignment, SectionCreate, SectionOut
from coursegrid.services.enrollment import assign_instructor, create_section, delete_section, require_section

router = APIRouter()


@router.get("/", response_model=list[SectionOut])
def list_sections(
    semester_id: str | None = Query(default=None, max_length=36),
    course_id: str | None = Query(default=None, max_length=36),
    instructor_id: str | None = Query(default=None, max_length=36),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SectionOut]:
    statement = select(Section)
    if semester_id:
        statement = statement.where(Section.semester_id == semester_id)
    if course_id:
        statement = statement.where(Section.course_id == course_id)
    if instructor_id:
        statement = statement.where(Section.instructor_id == instructor_id)
    return list(db.execute(statement.order_by(Section.name.asc())).unique().scalars())


@router.post("/", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def create(
    payload: SectionCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> SectionOut:
    return create_section(
        db,
        course_id=payload.course_id,
        instructor_id=payload.instructor_id,
        meetings=payload.meetings,
        room_id=payload.room_id,
        semester_id=payload.semester_id,
        capacity=payload.capacity,
        name=payload.name,
        actor=current_user,
    )


@router.get("/{section_id}", response_model=SectionOut)
def get_section(
    section_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SectionOut:
    return require_section(db, section_id)


@router.put("/{section_id}/instructor", response_model=SectionOut)
def set_instructor(
    section_id: str,
    payload: InstructorAssignment,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> SectionOut:
    return assign_instructor(
        db,
        instructor_id=payload.instructor_id,
        section_id=section_id,
        meetings=payload.meetings,
        actor=current_user,
    )


@router.delete("/{section_id}")
def delete(
    section_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> dict:
    delete_section(db, section_id=section_id, actor=current_user)
    return {"success": True}
