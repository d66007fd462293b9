from pydantic import BaseModel, Field, model_validator

from coursegrid.schemas.section import MeetingIn
from coursegrid.services.conflict_service import PartyKind


class ConflictCheckRequest(BaseModel):
    """Either an existing ``section_id`` or a ``course_id`` with proposed ``meetings``."""

    party_kind: PartyKind
    party_id: str = Field(min_length=1, max_length=36)
    section_id: str | None = Field(default=None, max_length=36)
    course_id: str | None = Field(default=None, max_length=36)
    semester_id: str | None = Field(default=None, max_length=36)
    meetings: list[MeetingIn] | None = Field(default=None, min_length=1, max_length=20)

    @model_validator(mode="after")
    def validate_target(self) -> "ConflictCheckRequest":
        if self.section_id is None and (self.course_id is None or self.meetings is None):
            raise ValueError("Provide section_id, or course_id together with meetings")
        return self


class ConflictOut(BaseModel):
    conflict_type: str
    party_kind: str
    party_id: str
    conflicting_section_id: str
    conflicting_course_code: str
    conflicting_course_name: str
    day_of_week: str
    start_time: str
    end_time: str
    time: str
    candidate_start_time: str
    candidate_end_time: str
    current_course_code: str
    current_course_name: str
    message: str


class ConflictCheckOut(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictOut]
