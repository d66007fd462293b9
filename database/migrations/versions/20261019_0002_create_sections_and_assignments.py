"""create sections, meetings, assignments and grades

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


assignment_status_enum = sa.Enum("enrolled", "dropped", "completed", "failed", name="assignment_status")


def upgrade() -> None:
    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("instructor_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "semester_id", sa.String(length=36), sa.ForeignKey("semesters.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sections_course_id", "sections", ["course_id"])
    op.create_index("ix_sections_instructor_id", "sections", ["instructor_id"])
    op.create_index("ix_sections_semester_id", "sections", ["semester_id"])

    op.create_table(
        "section_meetings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "section_id", sa.String(length=36), sa.ForeignKey("sections.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("section_id", "day_of_week", "start_time", name="uq_section_meetings_section_id"),
    )
    op.create_index("ix_section_meetings_section_id", "section_meetings", ["section_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "section_id", sa.String(length=36), sa.ForeignKey("sections.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", assignment_status_enum, nullable=False, server_default="enrolled"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("student_id", "section_id", name="uq_assignments_student_section"),
    )
    op.create_index("ix_assignments_student_id", "assignments", ["student_id"])
    op.create_index("ix_assignments_section_id", "assignments", ["section_id"])

    op.create_table(
        "grades",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "assignment_id",
            sa.String(length=36),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("numeric_grade", sa.Integer(), nullable=True),
        sa.Column("letter_grade", sa.String(length=4), nullable=False),
        sa.Column("points", sa.Float(), nullable=True),
        sa.Column("semester_number", sa.Integer(), nullable=True),
        sa.Column("academic_year", sa.String(length=20), nullable=True),
        sa.Column("is_placeholder", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_grades_assignment_id", "grades", ["assignment_id"], unique=True)
    op.create_index("ix_grades_student_id", "grades", ["student_id"])


def downgrade() -> None:
    op.drop_index("ix_grades_student_id", table_name="grades")
    op.drop_index("ix_grades_assignment_id", table_name="grades")
    op.drop_table("grades")
    op.drop_index("ix_assignments_section_id", table_name="assignments")
    op.drop_index("ix_assignments_student_id", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("ix_section_meetings_section_id", table_name="section_meetings")
    op.drop_table("section_meetings")
    op.drop_index("ix_sections_semester_id", table_name="sections")
    op.drop_index("ix_sections_instructor_id", table_name="sections")
    op.drop_index("ix_sections_course_id", table_name="sections")
    op.drop_table("sections")
    assignment_status_enum.drop(op.get_bind(), checkfirst=True)
