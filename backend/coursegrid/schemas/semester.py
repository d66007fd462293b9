from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class SemesterCreate(BaseModel):
    academic_year: str = Field(min_length=4, max_length=20)
    semester_number: int = Field(ge=1, le=3)
    name: str | None = Field(default=None, max_length=100)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool = False

    @model_validator(mode="after")
    def validate_dates(self) -> "SemesterCreate":
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if not self.name:
            self.name = f"{self.academic_year} Semester {self.semester_number}"
        return self


class SemesterOut(BaseModel):
    id: str
    academic_year: str
    semester_number: int
    name: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool
    closed_at: datetime | None = None

    model_config = {"from_attributes": True}


class SemesterCloseOut(BaseModel):
    semester_id: str
    processed: int
    passed: int
    failed: int
    pending: int
    already_closed: bool
