"""Celery tasks that run enrollment side effects in a worker.

Requests only enqueue an enrollment id. The worker reads the enrollment and
its course back from the store and runs the configured observers, so
notification delivery never holds up the response.
"""

import logging
from dataclasses import replace

from celery import shared_task

from enrollments import wiring
from enrollments.domain import Course, Enrollment, EnrollmentStatus
from enrollments.services.collaborators import AdmissionObserver
from enrollments.services.dispatch import InlineDispatcher
from enrollments.stores.interfaces import COURSES, ENROLLMENTS, DocumentStore
from enrollments.stores.records import course_from_document, enrollment_from_document

logger = logging.getLogger(__name__)


def _load_enrollment(store: DocumentStore, enrollment_id: str) -> Enrollment | None:
    document = store.get(ENROLLMENTS, enrollment_id)
    if document is None:
        logger.warning("Enrollment %s is gone, skipping side effects", enrollment_id)
        return None
    return enrollment_from_document(document)


@shared_task(name="enrollments.run_admission_observers", ignore_result=True)
def run_admission_observers(enrollment_id: str) -> None:
    store = wiring.document_store()
    enrollment = _load_enrollment(store, enrollment_id)
    if enrollment is None:
        return
    course_document = store.get(COURSES, enrollment.course_id.value)
    if course_document is None:
        logger.warning("Course of enrollment %s is gone, skipping side effects", enrollment_id)
        return
    course = course_from_document(course_document)
    dispatcher = InlineDispatcher()
    for observer in wiring.observers(store):
        dispatcher.submit(observer.name, observer.on_admitted, enrollment, course)


@shared_task(name="enrollments.run_status_observers", ignore_result=True)
def run_status_observers(enrollment_id: str, status: str) -> None:
    """Run status observers for the transition to ``status``.

    The stored enrollment may have moved on since; observers still see the
    status this task was queued for.
    """
    store = wiring.document_store()
    stored = _load_enrollment(store, enrollment_id)
    if stored is None:
        return
    enrollment = replace(stored, status=EnrollmentStatus.parse(status))
    dispatcher = InlineDispatcher()
    for observer in wiring.observers(store):
        dispatcher.submit(observer.name, observer.on_status_changed, enrollment)


class QueuedObserver(AdmissionObserver):
    """Forwards admissions and status changes to the Celery worker."""

    name = "queued-side-effects"

    def on_admitted(self, enrollment: Enrollment, course: Course) -> None:
        run_admission_observers.delay(enrollment.id.value)

    def on_status_changed(self, enrollment: Enrollment) -> None:
        run_status_observers.delay(enrollment.id.value, enrollment.status.value)
