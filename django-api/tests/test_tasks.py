"""Tests for side effects queued to the Celery worker.

Run with: pytest tests/test_tasks.py -v
"""

from unittest import mock

import pytest

from enrollments import tasks
from enrollments.services.activity import ActivityLogger
from enrollments.services.admission import AdmissionService
from enrollments.services.collaborators import SuppliedPhone
from enrollments.services.enrollment_admin import EnrollmentAdminService
from enrollments.stores.django_store import DjangoDocumentStore
from enrollments.stores.interfaces import ENROLLEE_PROFILES, ENROLLMENTS, LOGS
from factories import enrollment_doc, seed_course


class TestQueuedObserver:
    """Requests only enqueue; the worker runs the observers."""

    def test_admission_enqueues_without_running_observers(self, store, dispatcher, clock, user):
        """enroll returns once the enrollment id is queued."""
        seed_course(store)
        service = AdmissionService(
            store, SuppliedPhone("1155551234"), dispatcher, [tasks.QueuedObserver()], clock=clock
        )

        with mock.patch.object(tasks.run_admission_observers, "delay") as delay:
            enrollment = service.enroll("pastas", user)

        delay.assert_called_once_with(enrollment.id.value)
        assert store.query(LOGS) == []
        assert store.get(ENROLLEE_PROFILES, user.email) is None

    def test_status_change_enqueues_new_status(self, store, dispatcher, clock, admin_identity):
        """Status changes queue the enrollment id with the status reached."""
        service = EnrollmentAdminService(
            store, dispatcher, ActivityLogger(store), [tasks.QueuedObserver()], clock=clock
        )
        enrollment_id = store.create(ENROLLMENTS, enrollment_doc("pastas", "ana"))

        with mock.patch.object(tasks.run_status_observers, "delay") as delay:
            service.cancel(enrollment_id, admin_identity)

        delay.assert_called_once_with(enrollment_id, "cancelled")


@pytest.mark.django_db
class TestObserverTasks:
    """Tests for the worker-side tasks."""

    def test_admission_observers_run_in_worker(self):
        """The worker writes the audit entry and the enrollee profile."""
        store = DjangoDocumentStore()
        seed_course(store)
        enrollment_id = store.create(ENROLLMENTS, enrollment_doc("pastas", "ana"))

        tasks.run_admission_observers(enrollment_id)

        (entry,) = store.query(LOGS)
        assert entry.data["action"] == "enrollment_created"
        assert store.get(ENROLLEE_PROFILES, "ana@example.com").data["totalEnrollments"] == 1

    def test_status_observers_see_queued_status(self):
        """Observers get the status the task was queued for."""
        store = DjangoDocumentStore()
        seed_course(store)
        enrollment_id = store.create(ENROLLMENTS, enrollment_doc("pastas", "ana"))

        tasks.run_status_observers(enrollment_id, "confirmed")

        (entry,) = store.query(LOGS)
        assert entry.data["action"] == "enrollment_status_changed"
        assert entry.data["details"]["status"] == "confirmed"

    def test_deleted_enrollment_is_skipped(self):
        """A task for a removed enrollment does nothing."""
        tasks.run_admission_observers("missing")

        assert DjangoDocumentStore().query(LOGS) == []
