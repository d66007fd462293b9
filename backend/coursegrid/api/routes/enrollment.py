from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursegrid.api.deps import STAFF_ROLES, ensure_self_or_staff, get_current_user, get_db, require_roles
from coursegrid.models.assignment import Assignment
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.enrollment import AssignmentOut, EnrollmentRequest, StudentScheduleItem
from coursegrid.services.enrollment import drop, enroll

router = APIRouter()


def _target_student(payload: EnrollmentRequest, current_user: User) -> str:
    if payload.student_id is None:
        if current_user.role in STAFF_ROLES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="student_id is required")
        return current_user.id
    ensure_self_or_staff(current_user, payload.student_id)
    return payload.student_id


@router.post("/enroll", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def enroll_student(
    payload: EnrollmentRequest,
    current_user: User = Depends(require_roles(UserRole.student, UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    student_id = _target_student(payload, current_user)
    return enroll(db, student_id=student_id, section_id=payload.section_id, actor=current_user)


@router.post("/drop", response_model=AssignmentOut)
def drop_student(
    payload: EnrollmentRequest,
    current_user: User = Depends(require_roles(UserRole.student, UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    student_id = _target_student(payload, current_user)
    return drop(db, student_id=student_id, section_id=payload.section_id, actor=current_user)


@router.get("/student/{student_id}", response_model=list[StudentScheduleItem])
def student_schedule(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[StudentScheduleItem]:
    ensure_self_or_staff(current_user, student_id)
    statement = (
        select(Assignment)
        .where(Assignment.student_id == student_id)
        .order_by(Assignment.created_at.asc())
    )
    return list(db.execute(statement).scalars())
