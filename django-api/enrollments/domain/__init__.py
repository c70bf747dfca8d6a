from enrollments.domain.capacity import (
    ScheduleFilter,
    ScheduleState,
    capacity_view,
    count_active,
    matches_schedule,
    schedule_state,
)
from enrollments.domain.models import (
    CapacityPatch,
    CapacityView,
    Course,
    Enrollment,
    SeatClaim,
    UserIdentity,
    UserProfile,
)
from enrollments.domain.value_objects import (
    ACTIVE_STATUSES,
    Capacity,
    CourseId,
    CourseStatus,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    Phone,
)

__all__ = [
    "Course",
    "Enrollment",
    "SeatClaim",
    "UserIdentity",
    "UserProfile",
    "CapacityPatch",
    "CapacityView",
    "CourseId",
    "EnrollmentId",
    "EnrollmentStatus",
    "CourseStatus",
    "ACTIVE_STATUSES",
    "Money",
    "Capacity",
    "Phone",
    "ScheduleFilter",
    "ScheduleState",
    "capacity_view",
    "count_active",
    "matches_schedule",
    "schedule_state",
]
