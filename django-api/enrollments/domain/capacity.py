"""Occupancy arithmetic over enrollment sets.

Everything here is pure: callers fetch the enrollments, these functions
only count them.
"""

from collections.abc import Iterable
from datetime import date
from enum import Enum

from enrollments.domain.models import CapacityPatch, CapacityView, Course, Enrollment, SeatClaim
from enrollments.domain.value_objects import CourseId


def count_active(
    enrollments: Iterable[Enrollment | SeatClaim], course_id: CourseId | None = None
) -> int:
    """Return how many enrollments occupy a seat.

    Cancelled and unrecognized statuses are excluded. When ``course_id`` is
    given, enrollments for other courses are ignored.
    """
    total = 0
    for enrollment in enrollments:
        if course_id is not None and enrollment.course_id != course_id:
            continue
        status = getattr(enrollment, "status", None)
        if status is not None and status.is_active:
            total += 1
    return total


def capacity_view(
    course: Course, enrollments: Iterable[Enrollment | SeatClaim]
) -> CapacityView:
    """Build the derived occupancy view for ``course``."""
    active = [
        enrollment
        for enrollment in enrollments
        if enrollment.course_id == course.id and enrollment.is_active
    ]
    return CapacityView(
        course_id=course.id,
        capacity=course.capacity.value,
        occupied=count_active(active),
        enrollment_ids=tuple(enrollment.id.value for enrollment in active),
    )


class ScheduleState(str, Enum):
    """Course card state shown in the catalog."""

    FINISHED = "finished"
    TODAY = "today"
    TODAY_FULL = "today_full"
    FULL = "full"
    AVAILABLE = "available"


class ScheduleFilter(str, Enum):
    """Catalog filter by course date."""

    UPCOMING = "upcoming"
    TODAY = "today"
    FINISHED = "finished"


def schedule_state(
    course: Course, view: CapacityView | CapacityPatch, today: date
) -> ScheduleState:
    course_day = course.scheduled_at.date()
    if course_day < today:
        return ScheduleState.FINISHED
    if course_day == today:
        return ScheduleState.TODAY_FULL if view.is_full else ScheduleState.TODAY
    if view.is_full:
        return ScheduleState.FULL
    return ScheduleState.AVAILABLE


def matches_schedule(course: Course, wanted: ScheduleFilter, today: date) -> bool:
    course_day = course.scheduled_at.date()
    match wanted:
        case ScheduleFilter.UPCOMING:
            return course_day > today
        case ScheduleFilter.TODAY:
            return course_day == today
        case ScheduleFilter.FINISHED:
            return course_day < today
