from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.attendance import AttendanceLogEntry, AttendanceStatus  # noqa: F401
from app.models.directory import (  # noqa: F401
    CourseType,
    Program,
    Room,
    Section,
    SemesterDateRange,
    SemesterSystem,
)
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.override import ScheduleOverride  # noqa: F401
from app.models.pending_change import (  # noqa: F401
    PendingChange,
    PendingChangeKind,
    PendingChangeStatus,
)
from app.models.routine import RoutineVersion, SemesterRoutine  # noqa: F401
from app.models.schedule_log import ScheduleLogEntry  # noqa: F401
from app.models.user import AssignAccess, User, UserRole  # noqa: F401
