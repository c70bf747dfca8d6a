"""Live occupancy views for the courses on screen.

A CourseTracker keeps one store subscription per course and pushes a
CapacityPatch to the renderer whenever the course's active enrollment set
changes. TrackerRegistry owns the trackers for one view and gives them an
explicit lifecycle: start_tracking() when courses are shown, untrack_all()
when the view is left.

Each tracker carries a generation counter. Every subscription it opens is
tagged with the generation current at that time, and callbacks tagged with
an older generation are dropped. That is what keeps a snapshot delivered
after tear-down (or after a restart) from reaching the renderer.
"""

import logging
import threading
from collections.abc import Iterable, Sequence
from enum import Enum

from enrollments.domain import (
    ACTIVE_STATUSES,
    CapacityView,
    Course,
    CourseId,
    capacity_view,
)
from enrollments.domain.errors import StoreUnavailableError
from enrollments.services.collaborators import CapacityRenderer
from enrollments.stores.interfaces import (
    ENROLLMENTS,
    Document,
    DocumentStore,
    Filter,
    Subscription,
)
from enrollments.stores.records import seat_claims_from_documents

logger = logging.getLogger(__name__)


def active_enrollment_filters(course_id: CourseId) -> list[Filter]:
    return [
        Filter.eq("courseId", course_id.value),
        Filter.is_in("status", [status.value for status in ACTIVE_STATUSES]),
    ]


class TrackingState(Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"


class CourseTracker:
    """Live occupancy of a single course.

    Store callbacks may arrive on whichever thread wrote the change, so
    lifecycle changes and snapshot handling share one lock.
    """

    def __init__(self, course: Course, store: DocumentStore, renderer: CapacityRenderer) -> None:
        self.course = course
        self._store = store
        self._renderer = renderer
        self._lock = threading.RLock()
        self._state = TrackingState.UNSUBSCRIBED
        self._generation = 0
        self._subscription: Subscription | None = None
        self._view: CapacityView | None = None

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def view(self) -> CapacityView | None:
        """Last known occupancy, kept after the subscription ends."""
        return self._view

    def start(self) -> None:
        with self._lock:
            if self._state is not TrackingState.UNSUBSCRIBED:
                return
            self._generation += 1
            generation = self._generation
            self._state = TrackingState.SUBSCRIBING
            try:
                subscription = self._store.subscribe(
                    ENROLLMENTS,
                    active_enrollment_filters(self.course.id),
                    on_change=lambda documents: self._on_snapshot(generation, documents),
                    on_error=lambda error: self._on_error(generation, error),
                )
            except StoreUnavailableError:
                logger.error("Could not open live view for course %s", self.course.id)
                self._state = TrackingState.UNSUBSCRIBED
                return
            if generation != self._generation:
                # failed while subscribe() was delivering
                subscription.unsubscribe()
                return
            self._subscription = subscription

    def stop(self) -> None:
        """Tear down the subscription. Safe to call in any state."""
        with self._lock:
            self._generation += 1
            subscription, self._subscription = self._subscription, None
            self._state = TrackingState.UNSUBSCRIBED
        if subscription is not None:
            subscription.unsubscribe()

    def _on_snapshot(self, generation: int, documents: list[Document]) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping stale snapshot for course %s", self.course.id)
                return
            view = capacity_view(self.course, seat_claims_from_documents(documents))
            self._state = TrackingState.SUBSCRIBED
            self._view = view
            try:
                self._renderer.render(view.as_patch())
            except Exception:
                logger.exception("Renderer failed for course %s", self.course.id)

    def _on_error(self, generation: int, error: Exception) -> None:
        with self._lock:
            if generation != self._generation:
                return
            logger.error(
                "Live view for course %s stopped: %s; keeping last known occupancy",
                self.course.id,
                error,
            )
            self._generation += 1
            subscription, self._subscription = self._subscription, None
            self._state = TrackingState.UNSUBSCRIBED
        if subscription is not None:
            subscription.unsubscribe()


class TrackerRegistry:
    """Owns the CourseTrackers of one view; safe to share between threads."""

    def __init__(self, store: DocumentStore, renderer: CapacityRenderer) -> None:
        self._store = store
        self._renderer = renderer
        self._lock = threading.RLock()
        self._trackers: dict[CourseId, CourseTracker] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)

    def __contains__(self, course_id: CourseId) -> bool:
        with self._lock:
            return course_id in self._trackers

    def track(self, course: Course) -> CourseTracker:
        """Start tracking ``course``; an already tracked course keeps its tracker."""
        with self._lock:
            tracker = self._trackers.get(course.id)
            if tracker is None:
                tracker = CourseTracker(course, self._store, self._renderer)
                self._trackers[course.id] = tracker
            tracker.start()
            return tracker

    def start_tracking(self, courses: Iterable[Course]) -> list[CourseTracker]:
        """Replace every tracked course with ``courses``."""
        with self._lock:
            self.untrack_all()
            return [self.track(course) for course in courses]

    def untrack_all(self) -> None:
        with self._lock:
            trackers = list(self._trackers.values())
            self._trackers.clear()
            for tracker in trackers:
                tracker.stop()

    def tracked_courses(self) -> dict[CourseId, Course]:
        with self._lock:
            return {course_id: tracker.course for course_id, tracker in self._trackers.items()}

    def view(self, course_id: CourseId) -> CapacityView | None:
        with self._lock:
            tracker = self._trackers.get(course_id)
        return tracker.view if tracker is not None else None


class CourseCatalogController:
    """View controller for the course list; owns its TrackerRegistry."""

    def __init__(self, store: DocumentStore, renderer: CapacityRenderer) -> None:
        self.registry = TrackerRegistry(store, renderer)
        self._lock = threading.Lock()

    def show(self, courses: Sequence[Course]) -> None:
        """Track ``courses``, restarting only when the visible courses changed."""
        wanted = {course.id: course for course in courses}
        with self._lock:
            if wanted == self.registry.tracked_courses():
                for course in courses:
                    self.registry.track(course)
                return
            self.registry.start_tracking(courses)

    def leave(self) -> None:
        with self._lock:
            self.registry.untrack_all()

    def view(self, course_id: CourseId) -> CapacityView | None:
        return self.registry.view(course_id)
