"""Catalog service - read side of courses and enrollments.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

from collections.abc import Callable
from datetime import date

from django.utils import timezone

from enrollments.domain import (
    CapacityView,
    Course,
    CourseId,
    Enrollment,
    ScheduleFilter,
    UserIdentity,
    capacity_view,
)
from enrollments.domain.capacity import matches_schedule
from enrollments.domain.errors import CourseNotFoundError
from enrollments.stores.interfaces import COURSES, ENROLLMENTS, DocumentStore, Filter
from enrollments.stores.records import (
    course_from_document,
    courses_from_documents,
    enrollments_from_documents,
    seat_claims_from_documents,
)


class CatalogService:
    """Service for course catalog operations."""

    def __init__(
        self, store: DocumentStore, today: Callable[[], date] = timezone.localdate
    ) -> None:
        self._store = store
        self._today = today

    def list_courses(self, schedule: ScheduleFilter | None = None) -> list[Course]:
        """Return courses ordered by date, optionally filtered by schedule."""
        courses = courses_from_documents(self._store.query(COURSES, order_by="scheduledAt"))
        if schedule is None:
            return courses
        today = self._today()
        return [course for course in courses if matches_schedule(course, schedule, today)]

    def get_course(self, course_id: str) -> Course:
        """Return a course by ID.

        Raises:
            CourseNotFoundError: If the id is malformed or the course does not exist.
        """
        try:
            key = CourseId.from_string(course_id)
        except ValueError:
            raise CourseNotFoundError(course_id) from None
        document = self._store.get(COURSES, key.value)
        if document is None:
            raise CourseNotFoundError(course_id)
        return course_from_document(document)

    def capacity_for(self, course: Course) -> CapacityView:
        """Fresh occupancy read for ``course``."""
        documents = self._store.query(ENROLLMENTS, [Filter.eq("courseId", course.id.value)])
        return capacity_view(course, seat_claims_from_documents(documents))

    def enrollments_for_user(self, user: UserIdentity) -> list[Enrollment]:
        documents = self._store.query(
            ENROLLMENTS, [Filter.eq("userId", user.id)], order_by="-enrolledAt"
        )
        return enrollments_from_documents(documents)

    def today(self) -> date:
        return self._today()
