from pydantic import BaseModel, Field

from coursegrid.schemas.course import CourseOut


class GradeAssign(BaseModel):
    assignment_id: str = Field(min_length=1, max_length=36)
    numeric_grade: int = Field(ge=0, le=100)


class GradeOut(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    course_id: str
    numeric_grade: int | None = None
    letter_grade: str
    points: float | None = None
    semester_number: int | None = None
    academic_year: str | None = None
    is_placeholder: bool
    course: CourseOut

    model_config = {"from_attributes": True}


class GpaOut(BaseModel):
    cumulative: float
    total_credits: int
    total_points: float


class TranscriptOut(BaseModel):
    student_id: str
    semester_id: str | None = None
    grades: list[GradeOut]
    gpa: GpaOut
