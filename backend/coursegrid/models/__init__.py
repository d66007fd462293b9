from coursegrid.models.activity_log import ActivityLog  # noqa: F401
from coursegrid.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, Assignment, AssignmentStatus  # noqa: F401
from coursegrid.models.course import Course  # noqa: F401
from coursegrid.models.grade import PLACEHOLDER_LETTER, Grade  # noqa: F401
from coursegrid.models.room import Room  # noqa: F401
from coursegrid.models.section import Section, SectionMeeting  # noqa: F401
from coursegrid.models.semester import Semester  # noqa: F401
from coursegrid.models.time_slot import TimeSlot, TimeSlotCatalog  # noqa: F401
from coursegrid.models.user import User, UserRole  # noqa: F401
