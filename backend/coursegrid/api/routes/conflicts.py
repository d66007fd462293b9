from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursegrid.api.deps import ensure_self_or_staff, get_current_user, get_db
from coursegrid.core.exceptions import ResourceNotFoundError
from coursegrid.models.course import Course
from coursegrid.models.user import User, UserRole
from coursegrid.schemas.conflict import ConflictCheckOut, ConflictCheckRequest
from coursegrid.services.conflict_service import CandidateCourse, ConflictService, Party, PartyKind
from coursegrid.services.enrollment import require_party, require_section, validated_meetings

router = APIRouter()

PARTY_ROLES = {
    PartyKind.student: UserRole.student,
    PartyKind.instructor: UserRole.faculty,
}


@router.post("/check", response_model=ConflictCheckOut)
def check_conflicts(
    payload: ConflictCheckRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConflictCheckOut:
    """Dry run: report every overlap without saving anything."""
    ensure_self_or_staff(current_user, payload.party_id)
    service = ConflictService(db)

    if payload.section_id is not None:
        section = require_section(db, payload.section_id)
        party_user = require_party(db, payload.party_id, PARTY_ROLES[payload.party_kind])
        conflicts = service.check_section_for_party(section, Party(payload.party_kind, party_user.id))
    else:
        course = db.get(Course, payload.course_id)
        if course is None:
            raise ResourceNotFoundError("Course", payload.course_id)
        party_user = require_party(db, payload.party_id, PARTY_ROLES[payload.party_kind])
        conflicts = service.find_conflicts(
            validated_meetings(payload.meetings),
            Party(payload.party_kind, party_user.id),
            candidate_course=CandidateCourse(code=course.code, name=course.name),
            semester_id=payload.semester_id,
        )

    return ConflictCheckOut(
        has_conflicts=bool(conflicts),
        conflicts=[item.as_dict() for item in conflicts],
    )
