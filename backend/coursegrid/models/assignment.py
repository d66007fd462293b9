import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from coursegrid.db.base import Base
from coursegrid.models.course import Course
from coursegrid.models.section import Section
from coursegrid.models.user import User


class AssignmentStatus(str, Enum):
    enrolled = "enrolled"
    dropped = "dropped"
    completed = "completed"
    failed = "failed"


ACTIVE_ASSIGNMENT_STATUSES = (AssignmentStatus.enrolled, AssignmentStatus.completed, AssignmentStatus.failed)


class Assignment(Base):
    """Enrollment of one student in one section."""

    __tablename__ = "assignments"
    # The storage-level guard against concurrent double enrollment.
    __table_args__ = (UniqueConstraint("student_id", "section_id", name="uq_assignments_student_section"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    section_id: Mapped[str] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[AssignmentStatus] = mapped_column(
        SAEnum(AssignmentStatus, name="assignment_status"), nullable=False, default=AssignmentStatus.enrolled
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    student: Mapped[User] = relationship()
    section: Mapped[Section] = relationship()
    course: Mapped[Course] = relationship()
