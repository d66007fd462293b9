import itertools
import os
import tempfile
from pathlib import Path

# The app module builds its engine at import time, so point it somewhere disposable first.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="coursegrid-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_TEST_DB_DIR / 'app.db'}")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coursegrid.api.deps import get_db  # noqa: E402
from coursegrid.core.security import get_password_hash  # noqa: E402
from coursegrid.db.base import Base  # noqa: E402
from coursegrid.db.session import build_engine  # noqa: E402
from coursegrid.main import app  # noqa: E402
from coursegrid.models.assignment import Assignment, AssignmentStatus  # noqa: E402
from coursegrid.models.course import Course  # noqa: E402
from coursegrid.models.grade import Grade  # noqa: E402
from coursegrid.models.section import Section, SectionMeeting  # noqa: E402
from coursegrid.models.semester import Semester  # noqa: E402
from coursegrid.models.user import User, UserRole  # noqa: E402
from coursegrid.services.grading import letter_for_score  # noqa: E402
from coursegrid.services.time_grid import GridPolicy  # noqa: E402


@pytest.fixture()
def engine():
    engine = build_engine("sqlite+pysqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


ADMIN_EMAIL = "admin@example.edu"
ADMIN_PASSWORD = "password123"


@pytest.fixture()
def admin_credentials(session_factory):
    """An administrator seeded directly, since self-registration cannot create one."""
    with session_factory() as db:
        db.add(
            User(
                name="Admin",
                email=ADMIN_EMAIL,
                hashed_password=get_password_hash(ADMIN_PASSWORD),
                role=UserRole.admin,
            )
        )
        db.commit()
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture()
def policy():
    return GridPolicy()


class Factory:
    """Writes rows straight to the database, skipping the enrollment gate."""

    def __init__(self, db):
        self.db = db
        self._counter = itertools.count(1)

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def user(self, role: UserRole, name: str | None = None) -> User:
        n = next(self._counter)
        return self._save(
            User(
                name=name or f"{role.value.title()} {n}",
                email=f"{role.value}{n}@example.edu",
                hashed_password="not-a-real-hash",
                role=role,
            )
        )

    def student(self, name: str | None = None) -> User:
        return self.user(UserRole.student, name)

    def faculty(self, name: str | None = None) -> User:
        return self.user(UserRole.faculty, name)

    def course(self, code: str | None = None, name: str | None = None, credits: int = 3) -> Course:
        n = next(self._counter)
        return self._save(Course(code=code or f"CS{100 + n}", name=name or f"Course {n}", credits=credits))

    def semester(self, academic_year: str = "2026-2027", number: int = 1) -> Semester:
        return self._save(
            Semester(
                academic_year=academic_year,
                semester_number=number,
                name=f"{academic_year} Semester {number}",
            )
        )

    def section(
        self,
        course: Course | None = None,
        instructor: User | None = None,
        meetings=(("Monday", "10:00", "10:50"),),
        semester: Semester | None = None,
        capacity: int = 30,
    ) -> Section:
        course = course or self.course()
        instructor = instructor or self.faculty()
        return self._save(
            Section(
                name=f"{course.code} - Section {next(self._counter)}",
                course_id=course.id,
                instructor_id=instructor.id,
                semester_id=semester.id if semester else None,
                capacity=capacity,
                meetings=[
                    SectionMeeting(day_of_week=day, start_time=start, end_time=end, position=index)
                    for index, (day, start, end) in enumerate(meetings)
                ],
            )
        )

    def assignment(
        self,
        student: User,
        section: Section,
        status: AssignmentStatus = AssignmentStatus.enrolled,
    ) -> Assignment:
        return self._save(
            Assignment(student_id=student.id, section_id=section.id, course_id=section.course_id, status=status)
        )

    def grade(self, assignment: Assignment, numeric_grade: int) -> Grade:
        scored = letter_for_score(numeric_grade)
        return self._save(
            Grade(
                assignment_id=assignment.id,
                student_id=assignment.student_id,
                course_id=assignment.course_id,
                numeric_grade=numeric_grade,
                letter_grade=scored.letter,
                points=scored.points,
            )
        )


@pytest.fixture()
def factory(db_session):
    return Factory(db_session)
