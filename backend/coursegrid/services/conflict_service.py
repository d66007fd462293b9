from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from enum import Enum

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from coursegrid.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, Assignment
from coursegrid.models.course import Course
from coursegrid.models.section import Section, SectionMeeting
from coursegrid.services.time_grid import DAY_ORDER, GridSlot, intervals_overlap, parse_time_to_minutes

logger = logging.getLogger(__name__)


class PartyKind(str, Enum):
    student = "student"
    instructor = "instructor"


@dataclass(frozen=True)
class Party:
    kind: PartyKind
    id: str


@dataclass(frozen=True)
class Commitment:
    """One weekly meeting a party is already bound to."""

    section_id: str
    course_id: str
    course_code: str
    course_name: str
    day_of_week: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class CandidateCourse:
    code: str
    name: str


@dataclass(frozen=True)
class ConflictRecord:
    conflict_type: str
    party_kind: str
    party_id: str
    conflicting_section_id: str
    conflicting_course_code: str
    conflicting_course_name: str
    day_of_week: str
    start_time: str
    end_time: str
    candidate_start_time: str
    candidate_end_time: str
    current_course_code: str
    current_course_name: str
    message: str

    @property
    def time(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def as_dict(self) -> dict:
        data = asdict(self)
        data["time"] = self.time
        return data


CONFLICT_TYPES = {
    PartyKind.student: "student_time_conflict",
    PartyKind.instructor: "faculty_time_conflict",
}

PARTY_LABELS = {
    PartyKind.student: "Student",
    PartyKind.instructor: "Faculty",
}


def _minutes(value: str) -> int | None:
    try:
        return parse_time_to_minutes(value)
    except ValueError:
        return None


def detect_overlaps(
    existing: Iterable[Commitment],
    candidates: Sequence[GridSlot],
    *,
    party: Party,
    candidate_course: CandidateCourse,
) -> list[ConflictRecord]:
    """Pair every existing meeting with every candidate meeting on the same day.

    One record is produced per overlapping (existing, candidate) pair, so a
    section that collides in several places reports all of them.
    """
    candidates_by_day: dict[str, list[tuple[int, int, GridSlot]]] = defaultdict(list)
    for candidate in candidates:
        start, end = _minutes(candidate.start_time), _minutes(candidate.end_time)
        if start is None or end is None:
            continue
        candidates_by_day[candidate.day_of_week].append((start, end, candidate))

    conflict_type = CONFLICT_TYPES[party.kind]
    label = PARTY_LABELS[party.kind]
    records: list[ConflictRecord] = []
    for commitment in existing:
        day_candidates = candidates_by_day.get(commitment.day_of_week)
        if not day_candidates:
            continue
        start, end = _minutes(commitment.start_time), _minutes(commitment.end_time)
        if start is None or end is None:
            logger.warning(
                "Skipping malformed meeting %s-%s in section %s",
                commitment.start_time,
                commitment.end_time,
                commitment.section_id,
            )
            continue
        for candidate_start, candidate_end, candidate in day_candidates:
            if not intervals_overlap(start, end, candidate_start, candidate_end):
                continue
            records.append(
                ConflictRecord(
                    conflict_type=conflict_type,
                    party_kind=party.kind.value,
                    party_id=party.id,
                    conflicting_section_id=commitment.section_id,
                    conflicting_course_code=commitment.course_code,
                    conflicting_course_name=commitment.course_name,
                    day_of_week=commitment.day_of_week,
                    start_time=commitment.start_time,
                    end_time=commitment.end_time,
                    candidate_start_time=candidate.start_time,
                    candidate_end_time=candidate.end_time,
                    current_course_code=candidate_course.code,
                    current_course_name=candidate_course.name,
                    message=(
                        f"{label} has time conflict with {commitment.course_code} - {commitment.course_name} "
                        f"on {commitment.day_of_week} {commitment.start_time}-{commitment.end_time}"
                    ),
                )
            )

    records.sort(key=lambda item: (DAY_ORDER.get(item.day_of_week, len(DAY_ORDER)), item.start_time, item.candidate_start_time))
    return records


def find_internal_overlaps(meetings: Sequence[GridSlot]) -> list[tuple[GridSlot, GridSlot]]:
    """Overlapping pairs within a single section's own meeting list."""
    pairs: list[tuple[GridSlot, GridSlot]] = []
    by_day: dict[str, list[GridSlot]] = defaultdict(list)
    for meeting in meetings:
        by_day[meeting.day_of_week].append(meeting)
    for day_meetings in by_day.values():
        for index, first in enumerate(day_meetings):
            for second in day_meetings[index + 1 :]:
                if intervals_overlap(first.start_minutes, first.end_minutes, second.start_minutes, second.end_minutes):
                    pairs.append((first, second))
    return pairs


class ConflictService:
    """Reads a party's committed meetings and checks candidates against them.

    The commitment set is always projected from assignments and sections at
    call time; nothing is cached between checks.
    """

    def __init__(self, db: Session):
        self.db = db

    def commitments_for(
        self,
        party: Party,
        *,
        semester_id: str | None = None,
        exclude_section_id: str | None = None,
    ) -> list[Commitment]:
        statement = (
            select(
                SectionMeeting.section_id,
                Course.id,
                Course.code,
                Course.name,
                SectionMeeting.day_of_week,
                SectionMeeting.start_time,
                SectionMeeting.end_time,
            )
            .join(Section, Section.id == SectionMeeting.section_id)
            .join(Course, Course.id == Section.course_id)
        )
        if party.kind == PartyKind.student:
            statement = statement.join(Assignment, Assignment.section_id == Section.id).where(
                Assignment.student_id == party.id,
                Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
            )
        else:
            statement = statement.where(Section.instructor_id == party.id)

        if semester_id is not None:
            # Sections without a semester run every term, so they stay in scope.
            statement = statement.where(or_(Section.semester_id == semester_id, Section.semester_id.is_(None)))
        if exclude_section_id is not None:
            statement = statement.where(Section.id != exclude_section_id)

        return [Commitment(*row) for row in self.db.execute(statement).all()]

    def find_conflicts(
        self,
        candidate_meetings: Sequence[GridSlot],
        party: Party,
        *,
        candidate_course: CandidateCourse,
        semester_id: str | None = None,
        exclude_section_id: str | None = None,
    ) -> list[ConflictRecord]:
        if not candidate_meetings:
            return []
        existing = self.commitments_for(party, semester_id=semester_id, exclude_section_id=exclude_section_id)
        conflicts = detect_overlaps(existing, candidate_meetings, party=party, candidate_course=candidate_course)
        if conflicts:
            logger.info(
                "Found %s conflict(s) for %s %s against %s",
                len(conflicts),
                party.kind.value,
                party.id,
                candidate_course.code,
            )
        return conflicts

    def check_section_for_party(self, section: Section, party: Party) -> list[ConflictRecord]:
        return self.find_conflicts(
            meetings_of(section),
            party,
            candidate_course=CandidateCourse(code=section.course.code, name=section.course.name),
            semester_id=section.semester_id,
            exclude_section_id=section.id,
        )


def meetings_of(section: Section) -> list[GridSlot]:
    return [
        GridSlot(day_of_week=meeting.day_of_week, start_time=meeting.start_time, end_time=meeting.end_time)
        for meeting in section.meetings
    ]
