import pytest

from coursegrid.core.exceptions import ConflictsDetectedError
from coursegrid.models.assignment import AssignmentStatus
from coursegrid.services.conflict_service import (
    CandidateCourse,
    Commitment,
    ConflictService,
    Party,
    PartyKind,
    detect_overlaps,
    find_internal_overlaps,
    meetings_of,
)
from coursegrid.services.enrollment import create_section
from coursegrid.services.time_grid import GridSlot

INSTRUCTOR = Party(PartyKind.instructor, "faculty-x")
CANDIDATE = CandidateCourse(code="CS201", name="Data Structures")


def commitment(day, start, end, code="CS101", name="Intro to Programming", section_id="sec-1"):
    return Commitment(
        section_id=section_id,
        course_id=f"course-{code}",
        course_code=code,
        course_name=name,
        day_of_week=day,
        start_time=start,
        end_time=end,
    )


def test_candidate_section_reports_exactly_the_monday_overlap():
    existing = [commitment("Monday", "10:00", "10:50")]
    candidates = [GridSlot("Monday", "10:00", "10:50"), GridSlot("Tuesday", "09:00", "09:50")]

    conflicts = detect_overlaps(existing, candidates, party=INSTRUCTOR, candidate_course=CANDIDATE)

    assert len(conflicts) == 1
    record = conflicts[0]
    assert record.conflict_type == "faculty_time_conflict"
    assert record.day_of_week == "Monday"
    assert record.time == "10:00-10:50"
    assert record.conflicting_course_code == "CS101"
    assert record.current_course_code == "CS201"
    assert record.message.startswith("Faculty has time conflict with CS101 - Intro to Programming")


def test_meetings_on_different_days_never_conflict():
    existing = [commitment("Monday", "10:00", "10:50")]
    candidates = [GridSlot(day, "10:00", "10:50") for day in ("Sunday", "Tuesday", "Wednesday", "Thursday")]

    assert detect_overlaps(existing, candidates, party=INSTRUCTOR, candidate_course=CANDIDATE) == []


def test_meeting_ending_when_another_starts_is_not_a_conflict():
    existing = [commitment("Monday", "10:00", "10:50")]

    after = detect_overlaps(
        existing, [GridSlot("Monday", "10:50", "11:40")], party=INSTRUCTOR, candidate_course=CANDIDATE
    )
    before = detect_overlaps(
        existing, [GridSlot("Monday", "09:10", "10:00")], party=INSTRUCTOR, candidate_course=CANDIDATE
    )

    assert after == []
    assert before == []


def test_partial_overlap_on_either_side_is_a_conflict():
    existing = [commitment("Monday", "10:00", "10:50")]
    candidates = [GridSlot("Monday", "09:30", "10:20"), GridSlot("Monday", "10:40", "11:30")]

    conflicts = detect_overlaps(existing, candidates, party=INSTRUCTOR, candidate_course=CANDIDATE)

    assert [record.candidate_start_time for record in conflicts] == ["09:30", "10:40"]


def test_every_overlap_is_reported_not_just_the_first():
    existing = [
        commitment("Monday", "10:00", "10:50", code="CS101", section_id="sec-1"),
        commitment("Wednesday", "10:00", "10:50", code="CS101", section_id="sec-1"),
        commitment("Wednesday", "14:00", "14:50", code="MA110", name="Calculus", section_id="sec-2"),
    ]
    candidates = [
        GridSlot("Monday", "10:00", "10:50"),
        GridSlot("Wednesday", "10:00", "10:50"),
        GridSlot("Wednesday", "14:00", "14:50"),
    ]

    conflicts = detect_overlaps(
        existing,
        candidates,
        party=Party(PartyKind.student, "student-1"),
        candidate_course=CANDIDATE,
    )

    assert len(conflicts) == 3
    assert {record.conflicting_section_id for record in conflicts} == {"sec-1", "sec-2"}
    assert all(record.conflict_type == "student_time_conflict" for record in conflicts)
    assert conflicts[0].message.startswith("Student has time conflict with")


def test_malformed_stored_meeting_is_skipped():
    existing = [commitment("Monday", "10am", "11am"), commitment("Monday", "10:00", "10:50")]

    conflicts = detect_overlaps(
        existing, [GridSlot("Monday", "10:00", "10:50")], party=INSTRUCTOR, candidate_course=CANDIDATE
    )

    assert len(conflicts) == 1


def test_internal_overlaps_within_one_section():
    meetings = [
        GridSlot("Monday", "10:00", "10:50"),
        GridSlot("Monday", "10:30", "11:20"),
        GridSlot("Monday", "10:50", "11:40"),
        GridSlot("Tuesday", "10:00", "10:50"),
    ]

    pairs = find_internal_overlaps(meetings)

    assert [(first.start_time, second.start_time) for first, second in pairs] == [
        ("10:00", "10:30"),
        ("10:30", "10:50"),
    ]


def test_conflict_record_serializes_with_time_range():
    conflicts = detect_overlaps(
        [commitment("Monday", "10:00", "10:50")],
        [GridSlot("Monday", "10:00", "10:50")],
        party=INSTRUCTOR,
        candidate_course=CANDIDATE,
    )

    data = conflicts[0].as_dict()

    assert data["time"] == "10:00-10:50"
    assert data["party_kind"] == "instructor"
    assert data["party_id"] == "faculty-x"


def test_student_commitments_skip_dropped_assignments(db_session, factory):
    student = factory.student()
    kept = factory.section(meetings=[("Monday", "10:00", "10:50")])
    dropped = factory.section(meetings=[("Tuesday", "10:00", "10:50")])
    factory.assignment(student, kept)
    factory.assignment(student, dropped, status=AssignmentStatus.dropped)

    commitments = ConflictService(db_session).commitments_for(Party(PartyKind.student, student.id))

    assert [(item.section_id, item.day_of_week) for item in commitments] == [(kept.id, "Monday")]


def test_commitments_are_limited_to_the_candidate_semester(db_session, factory):
    fall = factory.semester(number=1)
    spring = factory.semester(number=2)
    instructor = factory.faculty()
    factory.section(instructor=instructor, semester=fall, meetings=[("Monday", "10:00", "10:50")])
    candidate = factory.section(instructor=factory.faculty(), semester=spring, meetings=[("Monday", "10:00", "10:50")])

    service = ConflictService(db_session)
    party = Party(PartyKind.instructor, instructor.id)

    assert service.find_conflicts(meetings_of(candidate), party, candidate_course=CANDIDATE, semester_id=spring.id) == []
    assert len(service.find_conflicts(meetings_of(candidate), party, candidate_course=CANDIDATE, semester_id=fall.id)) == 1


def test_check_section_for_student_ignores_the_section_itself(db_session, factory):
    student = factory.student()
    section = factory.section(meetings=[("Monday", "10:00", "10:50")])
    factory.assignment(student, section)

    conflicts = ConflictService(db_session).check_section_for_party(section, Party(PartyKind.student, student.id))

    assert conflicts == []


def test_instructor_commitments_come_from_taught_sections(db_session, factory):
    instructor = factory.faculty()
    taught = factory.section(instructor=instructor, meetings=[("Sunday", "08:00", "08:50"), ("Tuesday", "08:00", "08:50")])
    factory.section(meetings=[("Monday", "08:00", "08:50")])

    commitments = ConflictService(db_session).commitments_for(Party(PartyKind.instructor, instructor.id))

    assert {item.section_id for item in commitments} == {taught.id}
    assert len(commitments) == 2


def test_sections_without_a_semester_conflict_in_either_creation_order(db_session, factory):
    spring = factory.semester(number=2)
    monday = [GridSlot("Monday", "10:00", "10:50")]

    first_instructor = factory.faculty()
    factory.section(instructor=first_instructor, meetings=[("Monday", "10:00", "10:50")])
    with pytest.raises(ConflictsDetectedError):
        create_section(
            db_session,
            course_id=factory.course().id,
            instructor_id=first_instructor.id,
            semester_id=spring.id,
            meetings=monday,
        )

    second_instructor = factory.faculty()
    factory.section(instructor=second_instructor, semester=spring, meetings=[("Monday", "10:00", "10:50")])
    with pytest.raises(ConflictsDetectedError):
        create_section(
            db_session,
            course_id=factory.course().id,
            instructor_id=second_instructor.id,
            meetings=monday,
        )


def test_student_commitments_include_sections_without_a_semester(db_session, factory):
    spring = factory.semester(number=2)
    student = factory.student()
    factory.assignment(student, factory.section(meetings=[("Monday", "10:00", "10:50")]))
    candidate = factory.section(semester=spring, meetings=[("Monday", "10:00", "10:50")])

    conflicts = ConflictService(db_session).check_section_for_party(candidate, Party(PartyKind.student, student.id))

    assert len(conflicts) == 1
