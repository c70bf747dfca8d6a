"""Builds services from Django settings.

Handlers and management commands get their services here, so nothing
below the handler layer reads settings or picks implementations.
"""

import threading
from functools import lru_cache

from django.conf import settings

from enrollments import tasks
from enrollments.capacity_cache import CacheCapacityRenderer
from enrollments.domain import UserIdentity
from enrollments.services.activity import ActivityLogger, ActivityLogObserver
from enrollments.services.admission import AdmissionService
from enrollments.services.capacity_tracker import CourseCatalogController
from enrollments.services.catalog_service import CatalogService
from enrollments.services.collaborators import AdmissionObserver, IdentityProvider, SuppliedPhone
from enrollments.services.counter_sync import CounterSyncService
from enrollments.services.course_admin import CourseAdminService
from enrollments.services.dispatch import OnCommitDispatcher, TaskDispatcher
from enrollments.services.enrollment_admin import DEFAULT_PROOF_MAX_BYTES, EnrollmentAdminService
from enrollments.services.notifications import NotificationObserver, NotificationService
from enrollments.services.profiles import ProfileAggregator
from enrollments.stores.django_store import DjangoDocumentStore
from enrollments.stores.interfaces import DocumentStore


def app_setting(name: str, default):
    return getattr(settings, "ENROLLMENTS", {}).get(name, default)


class DjangoIdentityProvider(IdentityProvider):
    """Maps the authenticated Django user onto a UserIdentity."""

    def current_user(self, request) -> UserIdentity | None:
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        return UserIdentity(
            id=str(user.pk),
            email=user.email or "",
            display_name=user.get_full_name() or user.get_username(),
        )


def document_store() -> DocumentStore:
    return DjangoDocumentStore()


@lru_cache(maxsize=1)
def dispatcher() -> TaskDispatcher:
    return OnCommitDispatcher()


def activity_logger(store: DocumentStore) -> ActivityLogger:
    return ActivityLogger(store)


def observers(store: DocumentStore) -> list[AdmissionObserver]:
    """Observers run by the Celery worker."""
    notifications = NotificationService(
        store, timeout=app_setting("NOTIFICATION_TIMEOUT", 10.0)
    )
    return [
        NotificationObserver(notifications, store),
        ActivityLogObserver(activity_logger(store)),
        ProfileAggregator(store),
    ]


def admission_service(phone: str | None = None) -> AdmissionService:
    store = document_store()
    return AdmissionService(store, SuppliedPhone(phone), dispatcher(), [tasks.QueuedObserver()])


def catalog_service() -> CatalogService:
    return CatalogService(document_store())


def enrollment_admin_service() -> EnrollmentAdminService:
    store = document_store()
    return EnrollmentAdminService(
        store,
        dispatcher(),
        activity_logger(store),
        [tasks.QueuedObserver()],
        proof_max_bytes=app_setting("PROOF_MAX_BYTES", DEFAULT_PROOF_MAX_BYTES),
    )


def course_admin_service() -> CourseAdminService:
    store = document_store()
    return CourseAdminService(store, CatalogService(store), dispatcher(), activity_logger(store))


def counter_sync_service() -> CounterSyncService:
    return CounterSyncService(document_store())


_controller_lock = threading.Lock()
_controller: CourseCatalogController | None = None


def catalog_controller() -> CourseCatalogController:
    """Process-wide live view of the course list."""
    global _controller
    with _controller_lock:
        if _controller is None:
            _controller = CourseCatalogController(document_store(), CacheCapacityRenderer())
        return _controller


def reset() -> None:
    """Tear down process-level state (live subscriptions, dispatcher)."""
    global _controller
    with _controller_lock:
        controller, _controller = _controller, None
    if controller is not None:
        controller.leave()
    dispatcher.cache_clear()
