import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from coursegrid.db.base import Base
from coursegrid.models.course import Course
from coursegrid.models.room import Room
from coursegrid.models.semester import Semester
from coursegrid.models.user import User


class Section(Base):
    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    instructor_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    room_id: Mapped[str | None] = mapped_column(ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)
    semester_id: Mapped[str | None] = mapped_column(
        ForeignKey("semesters.id", ondelete="SET NULL"), index=True, nullable=True
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    course: Mapped[Course] = relationship(lazy="joined")
    instructor: Mapped[User] = relationship(lazy="joined")
    room: Mapped[Room | None] = relationship(lazy="joined")
    semester: Mapped[Semester | None] = relationship()
    meetings: Mapped[list["SectionMeeting"]] = relationship(
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="SectionMeeting.position",
        lazy="selectin",
    )


class SectionMeeting(Base):
    __tablename__ = "section_meetings"
    __table_args__ = (UniqueConstraint("section_id", "day_of_week", "start_time"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_id: Mapped[str] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), index=True, nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    section: Mapped[Section] = relationship(back_populates="meetings")
