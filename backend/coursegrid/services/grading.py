from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coursegrid.core.exceptions import (
    NotEnrolledError,
    PermissionDeniedError,
    ResourceNotFoundError,
    StorageFailureError,
)
from coursegrid.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, Assignment, AssignmentStatus
from coursegrid.models.grade import PLACEHOLDER_LETTER, Grade
from coursegrid.models.section import Section
from coursegrid.models.semester import Semester
from coursegrid.models.user import User, UserRole
from coursegrid.services.audit import log_activity

logger = logging.getLogger(__name__)

# (minimum score, letter, points), highest band first.
GRADE_SCALE: tuple[tuple[int, str, float], ...] = (
    (95, "A+", 5.0),
    (90, "A", 4.75),
    (85, "B+", 4.5),
    (80, "B", 4.0),
    (75, "C+", 3.5),
    (70, "C", 3.0),
    (65, "D+", 2.5),
    (60, "D", 2.0),
    (0, "F", 0.0),
)
PASSING_SCORE = 60


@dataclass(frozen=True)
class LetterGrade:
    letter: str
    points: float


def letter_for_score(score: int) -> LetterGrade:
    if score < 0 or score > 100:
        raise ValueError("Numeric grade must be between 0 and 100")
    for minimum, letter, points in GRADE_SCALE:
        if score >= minimum:
            return LetterGrade(letter, points)
    return LetterGrade("F", 0.0)


@dataclass(frozen=True)
class GpaSummary:
    cumulative: float
    total_credits: int
    total_points: float


def calculate_gpa(grades: Iterable[Grade]) -> GpaSummary:
    """Credit-weighted GPA; placeholder grades and grades without points are skipped."""
    total_points = 0.0
    total_credits = 0
    for grade in grades:
        if grade.is_placeholder or grade.points is None:
            continue
        credits = grade.course.credits
        total_points += grade.points * credits
        total_credits += credits
    cumulative = total_points / total_credits if total_credits > 0 else 0.0
    return GpaSummary(cumulative=cumulative, total_credits=total_credits, total_points=total_points)


def student_grades(db: Session, student_id: str, *, semester_id: str | None = None) -> list[Grade]:
    statement = select(Grade).where(Grade.student_id == student_id)
    if semester_id is not None:
        statement = (
            statement.join(Assignment, Assignment.id == Grade.assignment_id)
            .join(Section, Section.id == Assignment.section_id)
            .where(Section.semester_id == semester_id)
        )
    statement = statement.order_by(Grade.academic_year.desc(), Grade.semester_number.desc(), Grade.created_at.desc())
    return list(db.execute(statement).scalars())


def student_gpa(db: Session, student_id: str) -> GpaSummary:
    return calculate_gpa(student_grades(db, student_id))


def semester_gpa(db: Session, student_id: str, semester_id: str) -> GpaSummary:
    if db.get(Semester, semester_id) is None:
        raise ResourceNotFoundError("Semester", semester_id)
    return calculate_gpa(student_grades(db, student_id, semester_id=semester_id))


def _semester_fields(section: Section) -> dict:
    semester = section.semester
    if semester is None:
        return {"semester_number": None, "academic_year": None}
    return {"semester_number": semester.semester_number, "academic_year": semester.academic_year}


def _grade_for(db: Session, assignment_id: str) -> Grade | None:
    return db.execute(select(Grade).where(Grade.assignment_id == assignment_id)).scalar_one_or_none()


def _can_grade(actor: User, section: Section) -> bool:
    if actor.role in (UserRole.admin, UserRole.committee):
        return True
    return actor.role == UserRole.faculty and section.instructor_id == actor.id


def assign_grade(db: Session, *, assignment_id: str, numeric_grade: int, actor: User) -> Grade:
    """Save a numeric grade, replacing any earlier grade or placeholder."""
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise ResourceNotFoundError("Assignment", assignment_id)
    if not _can_grade(actor, assignment.section):
        raise PermissionDeniedError("Only the section instructor can assign grades")
    if assignment.status == AssignmentStatus.dropped:
        raise NotEnrolledError(assignment.student_id, assignment.section_id)

    scored = letter_for_score(numeric_grade)
    try:
        grade = _grade_for(db, assignment.id)
        if grade is None:
            grade = Grade(assignment_id=assignment.id, student_id=assignment.student_id, course_id=assignment.course_id)
            db.add(grade)
        grade.numeric_grade = numeric_grade
        grade.letter_grade = scored.letter
        grade.points = scored.points
        grade.is_placeholder = False
        for key, value in _semester_fields(assignment.section).items():
            setattr(grade, key, value)
        assignment.status = (
            AssignmentStatus.completed if numeric_grade >= PASSING_SCORE else AssignmentStatus.failed
        )
        log_activity(
            db,
            user=actor,
            action="grade.assign",
            entity_type="assignment",
            entity_id=assignment.id,
            details={"numeric_grade": numeric_grade, "letter_grade": scored.letter},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Saving grade failed for assignment %s", assignment_id)
        raise StorageFailureError("grade save") from exc

    db.refresh(grade)
    return grade


@dataclass
class CloseSummary:
    semester_id: str
    processed: int = 0
    passed: int = 0
    failed: int = 0
    pending: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def _finalize_assignment(db: Session, assignment: Assignment) -> str:
    semester_fields = _semester_fields(assignment.section)
    grade = _grade_for(db, assignment.id)

    if grade is not None and grade.numeric_grade is not None:
        scored = letter_for_score(grade.numeric_grade)
        grade.letter_grade = scored.letter
        grade.points = scored.points
        grade.is_placeholder = False
        if grade.semester_number is None:
            grade.semester_number = semester_fields["semester_number"]
        if grade.academic_year is None:
            grade.academic_year = semester_fields["academic_year"]
        passed = grade.numeric_grade >= PASSING_SCORE
        assignment.status = AssignmentStatus.completed if passed else AssignmentStatus.failed
        return "passed" if passed else "failed"

    if grade is None:
        grade = Grade(assignment_id=assignment.id, student_id=assignment.student_id, course_id=assignment.course_id)
        db.add(grade)
    grade.numeric_grade = None
    grade.letter_grade = PLACEHOLDER_LETTER
    grade.points = None
    grade.is_placeholder = True
    for key, value in semester_fields.items():
        setattr(grade, key, value)
    return "pending"


def close_semester(db: Session, semester_id: str, *, actor: User | None = None) -> CloseSummary:
    """Finalize every non-dropped assignment of the semester's sections.

    Each assignment commits on its own, so an interrupted run can simply be
    started again: real grades are only re-scored and placeholders are only
    created where no grade row exists.
    """
    semester = db.get(Semester, semester_id)
    if semester is None:
        raise ResourceNotFoundError("Semester", semester_id)

    assignment_ids = list(
        db.execute(
            select(Assignment.id)
            .join(Section, Section.id == Assignment.section_id)
            .where(Section.semester_id == semester.id, Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES))
            .order_by(Assignment.id)
        ).scalars()
    )
    logger.info("Closing semester %s (%s): %s assignment(s)", semester.name, semester.id, len(assignment_ids))

    summary = CloseSummary(semester_id=semester.id)
    for assignment_id in assignment_ids:
        try:
            assignment = db.get(Assignment, assignment_id)
            if assignment is None:
                continue
            outcome = _finalize_assignment(db, assignment)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Semester close stopped at assignment %s", assignment_id)
            raise StorageFailureError("semester close") from exc
        summary.processed += 1
        setattr(summary, outcome, getattr(summary, outcome) + 1)

    try:
        now = datetime.now(timezone.utc)
        if semester.closed_at is None:
            semester.closed_at = now
        if semester.end_date is None:
            semester.end_date = now
        log_activity(
            db,
            user=actor,
            action="semester.close",
            entity_type="semester",
            entity_id=semester.id,
            details=summary.as_dict(),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to stamp semester %s as closed", semester.id)
        raise StorageFailureError("semester close") from exc

    logger.info(
        "Closed semester %s: %s processed, %s passed, %s failed, %s pending",
        semester.name,
        summary.processed,
        summary.passed,
        summary.failed,
        summary.pending,
    )
    return summary
