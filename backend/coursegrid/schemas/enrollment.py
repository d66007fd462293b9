from datetime import datetime

from pydantic import BaseModel, Field

from coursegrid.models.assignment import AssignmentStatus
from coursegrid.schemas.section import SectionOut


class EnrollmentRequest(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    student_id: str | None = Field(default=None, max_length=36)


class AssignmentOut(BaseModel):
    id: str
    student_id: str
    section_id: str
    course_id: str
    status: AssignmentStatus
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class StudentScheduleItem(AssignmentOut):
    section: SectionOut
