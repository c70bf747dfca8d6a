"""Administrator course management."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from django.utils import timezone

from enrollments.domain import Capacity, Course, CourseId, CourseStatus, Money, UserIdentity
from enrollments.domain.errors import CourseNotFoundError, InvalidCourseError
from enrollments.services.activity import ActivityLogger
from enrollments.services.catalog_service import CatalogService
from enrollments.services.dispatch import TaskDispatcher
from enrollments.stores.interfaces import COURSES, Document, DocumentNotFound, DocumentStore
from enrollments.stores.records import LEGACY_COUNTER_FIELD, course_data, course_from_document

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "scheduled_at", "price", "capacity")


def _validated(field: str, value: Any) -> Any:
    match field:
        case "name":
            if not isinstance(value, str) or not value.strip():
                raise InvalidCourseError("name", "must not be empty")
            return value.strip()
        case "description":
            return str(value or "")
        case "scheduled_at":
            if not isinstance(value, datetime):
                raise InvalidCourseError("scheduled_at", "must be a date and time")
            return value
        case "price":
            try:
                return Money.parse(value)
            except ValueError as exc:
                raise InvalidCourseError("price", str(exc)) from exc
        case "capacity":
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidCourseError("capacity", "must be a positive integer")
            return Capacity(value)
        case "status":
            try:
                return CourseStatus(value)
            except ValueError:
                raise InvalidCourseError("status", f"unknown status '{value}'") from None
        case _:
            raise InvalidCourseError(field, "is not editable")


class CourseAdminService:
    """Create, edit and delete courses."""

    def __init__(
        self,
        store: DocumentStore,
        catalog: CatalogService,
        dispatcher: TaskDispatcher,
        activity: ActivityLogger,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._dispatcher = dispatcher
        self._activity = activity
        self._clock = clock

    def create(self, fields: Mapping[str, Any], admin: UserIdentity) -> Course:
        missing = [f for f in REQUIRED_FIELDS if f not in fields]
        if missing:
            raise InvalidCourseError(missing[0], "is required")
        values = {field: _validated(field, value) for field, value in fields.items()}
        draft = Course(
            id=CourseId("pending"),
            name=values["name"],
            description=values.get("description", ""),
            scheduled_at=values["scheduled_at"],
            price=values["price"],
            capacity=values["capacity"],
            status=values.get("status", CourseStatus.ACTIVE),
        )
        data = {**course_data(draft), "createdAt": self._clock().isoformat()}
        course_id = self._store.create(COURSES, data)
        course = course_from_document(Document(id=course_id, data=data))
        logger.info("Course %s created by %s", course_id, admin.email)
        self._log(admin, "course_created", course)
        return course

    def update(self, course_id: str, changes: Mapping[str, Any], admin: UserIdentity) -> Course:
        current = self._catalog.get_course(course_id)
        values = {field: _validated(field, value) for field, value in changes.items()}
        updated = replace(current, **values)
        if updated.capacity.value < current.capacity.value:
            occupied = self._catalog.capacity_for(current).occupied
            if occupied > updated.capacity.value:
                raise InvalidCourseError(
                    "capacity", f"cannot be below the {occupied} active enrollments"
                )
        # the legacy counter belongs to resync, never to course edits
        data = course_data(updated)
        data.pop(LEGACY_COUNTER_FIELD)
        try:
            self._store.update(COURSES, current.id.value, data)
        except DocumentNotFound:
            raise CourseNotFoundError(course_id) from None
        self._log(admin, "course_updated", updated)
        return updated

    def delete(self, course_id: str, admin: UserIdentity) -> None:
        course = self._catalog.get_course(course_id)
        try:
            self._store.delete(COURSES, course.id.value)
        except DocumentNotFound:
            raise CourseNotFoundError(course_id) from None
        logger.info("Course %s deleted by %s", course_id, admin.email)
        self._log(admin, "course_deleted", course)

    def _log(self, admin: UserIdentity, action: str, course: Course) -> None:
        self._dispatcher.submit(
            "activity-log",
            self._activity.log_course,
            action,
            {"courseId": course.id.value, "courseName": course.name},
            admin.email,
        )
