"""Enrollment and teaching-assignment gate.

Every public function here either commits one complete change or raises an
``AppError`` subclass and leaves the session rolled back. The checks run in a
fixed order (existence, role, duplicate, slot rules, conflicts) and the first
failure wins, except that a conflict error always lists every overlap.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from coursegrid.core.config import get_settings
from coursegrid.core.exceptions import (
    AlreadyEnrolledError,
    ConflictsDetectedError,
    DuplicateMeetingError,
    NotEnrolledError,
    ResourceNotFoundError,
    SectionFullError,
    SectionInUseError,
    StorageFailureError,
    WrongRoleError,
)
from coursegrid.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, Assignment, AssignmentStatus
from coursegrid.models.course import Course
from coursegrid.models.room import Room
from coursegrid.models.section import Section, SectionMeeting
from coursegrid.models.semester import Semester
from coursegrid.models.user import User, UserRole
from coursegrid.services.audit import log_activity
from coursegrid.services.conflict_service import (
    CandidateCourse,
    ConflictService,
    Party,
    PartyKind,
    find_internal_overlaps,
)
from coursegrid.services.time_grid import GridPolicy, GridSlot, ensure_valid_slot

logger = logging.getLogger(__name__)


class MeetingLike(Protocol):
    day_of_week: str
    start_time: str
    end_time: str


def _as_slots(meetings: Iterable[MeetingLike]) -> list[GridSlot]:
    return [
        GridSlot(day_of_week=item.day_of_week, start_time=item.start_time, end_time=item.end_time)
        for item in meetings
    ]


def require_section(db: Session, section_id: str) -> Section:
    section = db.get(Section, section_id)
    if section is None:
        raise ResourceNotFoundError("Section", section_id)
    return section


def require_party(db: Session, user_id: str, role: UserRole) -> User:
    user = db.get(User, user_id)
    if user is None:
        resource = "Student" if role == UserRole.student else "Instructor"
        raise ResourceNotFoundError(resource, user_id)
    if user.role != role:
        raise WrongRoleError(user_id, role.value, user.role.value)
    return user


def find_assignment(db: Session, student_id: str, section_id: str) -> Assignment | None:
    return db.execute(
        select(Assignment).where(Assignment.student_id == student_id, Assignment.section_id == section_id)
    ).scalar_one_or_none()


def active_enrollment_count(db: Session, section_id: str) -> int:
    return db.execute(
        select(func.count(Assignment.id)).where(
            Assignment.section_id == section_id,
            Assignment.status == AssignmentStatus.enrolled,
        )
    ).scalar_one()


def _raise_on_conflicts(conflicts) -> None:
    if conflicts:
        raise ConflictsDetectedError([item.as_dict() for item in conflicts])


def validated_meetings(meetings: Sequence[MeetingLike], policy: GridPolicy | None = None) -> list[GridSlot]:
    slots = _as_slots(meetings)
    for slot in slots:
        ensure_valid_slot(slot.day_of_week, slot.start_time, slot.end_time, policy)
    overlaps = find_internal_overlaps(slots)
    if overlaps:
        first, second = overlaps[0]
        raise DuplicateMeetingError(
            f"Meetings overlap each other: {first.label} and {second.label}",
            details={"overlaps": [[a.label, b.label] for a, b in overlaps]},
        )
    return slots


def enroll(db: Session, *, student_id: str, section_id: str, actor: User | None = None) -> Assignment:
    section = require_section(db, section_id)
    student = require_party(db, student_id, UserRole.student)

    # Fast path only; the unique constraint on (student_id, section_id) decides races.
    existing = find_assignment(db, student.id, section.id)
    if existing is not None and existing.status != AssignmentStatus.dropped:
        raise AlreadyEnrolledError(student.id, section.id)

    if active_enrollment_count(db, section.id) >= section.capacity:
        raise SectionFullError(section.id, section.capacity)

    conflicts = ConflictService(db).check_section_for_party(section, Party(PartyKind.student, student.id))
    _raise_on_conflicts(conflicts)

    try:
        if existing is not None:
            existing.status = AssignmentStatus.enrolled
            assignment = existing
        else:
            assignment = Assignment(
                student_id=student.id,
                section_id=section.id,
                course_id=section.course_id,
                status=AssignmentStatus.enrolled,
            )
            db.add(assignment)
        log_activity(
            db,
            user=actor,
            action="enrollment.enroll",
            entity_type="section",
            entity_id=section.id,
            details={"student_id": student.id},
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Concurrent enrollment rejected for student=%s section=%s", student.id, section.id)
        raise AlreadyEnrolledError(student.id, section.id) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Enrollment commit failed for student=%s section=%s", student.id, section.id)
        raise StorageFailureError("enrollment") from exc

    db.refresh(assignment)
    logger.info("Student %s enrolled in section %s", student.id, section.id)
    return assignment


def drop(db: Session, *, student_id: str, section_id: str, actor: User | None = None) -> Assignment:
    assignment = find_assignment(db, student_id, section_id)
    if assignment is None or assignment.status == AssignmentStatus.dropped:
        raise NotEnrolledError(student_id, section_id)

    try:
        assignment.status = AssignmentStatus.dropped
        log_activity(
            db,
            user=actor,
            action="enrollment.drop",
            entity_type="section",
            entity_id=section_id,
            details={"student_id": student_id},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Drop failed for student=%s section=%s", student_id, section_id)
        raise StorageFailureError("drop") from exc

    logger.info("Student %s dropped section %s", student_id, section_id)
    return assignment


def create_section(
    db: Session,
    *,
    course_id: str,
    instructor_id: str,
    meetings: Sequence[MeetingLike],
    room_id: str | None = None,
    semester_id: str | None = None,
    capacity: int | None = None,
    name: str | None = None,
    actor: User | None = None,
    policy: GridPolicy | None = None,
) -> Section:
    """Create a section and all of its meetings in one transaction."""
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    instructor = require_party(db, instructor_id, UserRole.faculty)
    if room_id is not None and db.get(Room, room_id) is None:
        raise ResourceNotFoundError("Room", room_id)
    if semester_id is not None and db.get(Semester, semester_id) is None:
        raise ResourceNotFoundError("Semester", semester_id)

    slots = validated_meetings(meetings, policy)
    conflicts = ConflictService(db).find_conflicts(
        slots,
        Party(PartyKind.instructor, instructor.id),
        candidate_course=CandidateCourse(code=course.code, name=course.name),
        semester_id=semester_id,
    )
    _raise_on_conflicts(conflicts)

    if name is None:
        sibling_count = db.execute(select(func.count(Section.id)).where(Section.course_id == course.id)).scalar_one()
        name = f"{course.code} - Section {sibling_count + 1}"

    try:
        section = Section(
            name=name,
            course_id=course.id,
            instructor_id=instructor.id,
            room_id=room_id,
            semester_id=semester_id,
            capacity=capacity or get_settings().default_section_capacity,
            meetings=[
                SectionMeeting(
                    day_of_week=slot.day_of_week,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    position=index,
                )
                for index, slot in enumerate(slots)
            ],
        )
        db.add(section)
        db.flush()
        log_activity(
            db,
            user=actor,
            action="section.create",
            entity_type="section",
            entity_id=section.id,
            details={"instructor_id": instructor.id, "meetings": [slot.label for slot in slots]},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Section creation failed for course %s", course.code)
        raise StorageFailureError("section creation") from exc

    db.refresh(section)
    logger.info("Created section %s (%s) with %s meeting(s)", section.id, section.name, len(slots))
    return section


def assign_instructor(
    db: Session,
    *,
    instructor_id: str,
    section_id: str,
    meetings: Sequence[MeetingLike] | None = None,
    actor: User | None = None,
    policy: GridPolicy | None = None,
) -> Section:
    """Hand a section to an instructor, optionally replacing its meetings.

    Replacement meetings go through slot validation; a section's current
    meetings are trusted as already stored.
    """
    section = require_section(db, section_id)
    instructor = require_party(db, instructor_id, UserRole.faculty)

    if meetings is not None:
        slots = validated_meetings(meetings, policy)
    else:
        slots = _as_slots(section.meetings)

    conflicts = ConflictService(db).find_conflicts(
        slots,
        Party(PartyKind.instructor, instructor.id),
        candidate_course=CandidateCourse(code=section.course.code, name=section.course.name),
        semester_id=section.semester_id,
        exclude_section_id=section.id,
    )
    _raise_on_conflicts(conflicts)

    previous_instructor_id = section.instructor_id
    try:
        section.instructor_id = instructor.id
        if meetings is not None:
            section.meetings.clear()
            # Old rows must be gone before new ones hit the (section, day, start) unique key.
            db.flush()
            section.meetings.extend(
                SectionMeeting(
                    day_of_week=slot.day_of_week,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    position=index,
                )
                for index, slot in enumerate(slots)
            )
        log_activity(
            db,
            user=actor,
            action="section.assign_instructor",
            entity_type="section",
            entity_id=section.id,
            details={
                "previous_instructor_id": previous_instructor_id,
                "instructor_id": instructor.id,
                "meetings_replaced": meetings is not None,
            },
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Instructor assignment failed for section %s", section_id)
        raise StorageFailureError("instructor assignment") from exc

    db.refresh(section)
    logger.info("Section %s assigned to instructor %s", section.id, instructor.id)
    return section


def delete_section(db: Session, *, section_id: str, actor: User | None = None) -> None:
    section = require_section(db, section_id)
    in_use = db.execute(
        select(func.count(Assignment.id)).where(
            Assignment.section_id == section.id,
            Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        )
    ).scalar_one()
    if in_use:
        raise SectionInUseError(section.id, in_use)

    try:
        log_activity(db, user=actor, action="section.delete", entity_type="section", entity_id=section.id)
        db.delete(section)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Section deletion failed for %s", section_id)
        raise StorageFailureError("section deletion") from exc
