"""Repair of the legacy ``inscriptos`` counter stored on course documents.

The counter is display cache only. Admission never reads it and never
calls this service; administrators run it explicitly.
"""

import logging

from enrollments.domain import CourseId, count_active
from enrollments.domain.errors import CourseNotFoundError
from enrollments.stores.interfaces import (
    COURSES,
    ENROLLMENTS,
    DocumentNotFound,
    DocumentStore,
    Filter,
)
from enrollments.stores.records import LEGACY_COUNTER_FIELD, seat_claims_from_documents

logger = logging.getLogger(__name__)


class CounterSyncService:
    """Recomputes denormalized enrollment counters from enrollment documents."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def resync(self, course_id: str) -> int:
        """Overwrite the course counter with the active enrollment count.

        Raises:
            CourseNotFoundError: If the course does not exist.
        """
        try:
            key = CourseId.from_string(course_id)
        except ValueError:
            raise CourseNotFoundError(course_id) from None
        documents = self._store.query(ENROLLMENTS, [Filter.eq("courseId", key.value)])
        active = count_active(seat_claims_from_documents(documents), key)
        try:
            self._store.update(COURSES, key.value, {LEGACY_COUNTER_FIELD: active})
        except DocumentNotFound:
            raise CourseNotFoundError(course_id) from None
        logger.info("Course %s counter resynchronized to %d", course_id, active)
        return active

    def resync_all(self) -> dict[str, int]:
        """Resynchronize every course and return the stored counts by course id."""
        return {document.id: self.resync(document.id) for document in self._store.query(COURSES)}
