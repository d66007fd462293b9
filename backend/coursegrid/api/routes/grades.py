from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursegrid.api.deps import ensure_self_or_staff, get_current_user, get_db, require_roles
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.grade import GradeAssign, GradeOut, TranscriptOut
from coursegrid.services.grading import assign_grade, semester_gpa, student_gpa, student_grades

router = APIRouter()


@router.post("/assign", response_model=GradeOut)
def assign(
    payload: GradeAssign,
    current_user: User = Depends(require_roles(UserRole.faculty, UserRole.admin, UserRole.committee)),
    db: Session = Depends(get_db),
) -> GradeOut:
    return assign_grade(db, assignment_id=payload.assignment_id, numeric_grade=payload.numeric_grade, actor=current_user)


@router.get("/student/{student_id}", response_model=TranscriptOut)
def transcript(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TranscriptOut:
    ensure_self_or_staff(current_user, student_id)
    return TranscriptOut(
        student_id=student_id,
        grades=[GradeOut.model_validate(grade) for grade in student_grades(db, student_id)],
        gpa=asdict(student_gpa(db, student_id)),
    )


@router.get("/student/{student_id}/semester/{semester_id}", response_model=TranscriptOut)
def semester_transcript(
    student_id: str,
    semester_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TranscriptOut:
    ensure_self_or_staff(current_user, student_id)
    gpa = semester_gpa(db, student_id, semester_id)
    grades = student_grades(db, student_id, semester_id=semester_id)
    return TranscriptOut(
        student_id=student_id,
        semester_id=semester_id,
        grades=[GradeOut.model_validate(grade) for grade in grades],
        gpa=asdict(gpa),
    )
