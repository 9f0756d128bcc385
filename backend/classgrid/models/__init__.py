from classgrid.models.activity_log import ActivityLog  # noqa: F401
from classgrid.models.course import Course  # noqa: F401
from classgrid.models.group import StudentGroup  # noqa: F401
from classgrid.models.room import Room  # noqa: F401
from classgrid.models.schedule import ScheduleEntry, ScheduleRevision  # noqa: F401
from classgrid.models.subject import Subject  # noqa: F401
from classgrid.models.teacher import Teacher  # noqa: F401
