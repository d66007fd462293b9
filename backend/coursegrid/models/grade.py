import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from coursegrid.db.base import Base
from coursegrid.models.assignment import Assignment
from coursegrid.models.course import Course

PLACEHOLDER_LETTER = "PN"


class Grade(Base):
    __tablename__ = "grades"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id: Mapped[str] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    numeric_grade: Mapped[int | None] = mapped_column(Integer, nullable=True)
    letter_grade: Mapped[str] = mapped_column(String(4), nullable=False)
    points: Mapped[float | None] = mapped_column(Float, nullable=True)
    semester_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_placeholder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    assignment: Mapped[Assignment] = relationship()
    course: Mapped[Course] = relationship()
