from pydantic import BaseModel, Field

from coursegrid.schemas.course import CourseOut
from coursegrid.schemas.room import RoomOut


class MeetingIn(BaseModel):
    # Slot rules are checked by the service so that failures carry the rule name.
    day_of_week: str = Field(min_length=1, max_length=10)
    start_time: str = Field(min_length=1, max_length=5)
    end_time: str = Field(min_length=1, max_length=5)


class MeetingOut(MeetingIn):
    model_config = {"from_attributes": True}


class SectionCreate(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    instructor_id: str = Field(min_length=1, max_length=36)
    room_id: str | None = Field(default=None, max_length=36)
    semester_id: str | None = Field(default=None, max_length=36)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    capacity: int | None = Field(default=None, ge=1, le=1000)
    meetings: list[MeetingIn] = Field(min_length=1, max_length=20)


class InstructorAssignment(BaseModel):
    instructor_id: str = Field(min_length=1, max_length=36)
    meetings: list[MeetingIn] | None = Field(default=None, min_length=1, max_length=20)


class SectionOut(BaseModel):
    id: str
    name: str
    course_id: str
    instructor_id: str
    room_id: str | None = None
    semester_id: str | None = None
    capacity: int
    course: CourseOut
    room: RoomOut | None = None
    meetings: list[MeetingOut]

    model_config = {"from_attributes": True}
