from pydantic import BaseModel, Field, field_validator


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    credits: int = Field(default=3, ge=0, le=40)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("Course code cannot be empty")
        return trimmed


class CourseCreate(CourseBase):
    pass


class CourseOut(CourseBase):
    id: str

    model_config = {"from_attributes": True}
