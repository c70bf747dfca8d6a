"""Enrollment admission - the check-then-act flow that creates enrollments.

Known limitation: the capacity and duplicate checks are point-in-time reads
with no lock or transaction around the write. Two admissions racing for the
last seat can both pass the capacity check and both be written; the same
holds for two parallel admissions of one user. Closing that gap needs an
atomic seat counter enforced by the store itself.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from django.utils import timezone

from enrollments.domain import (
    Course,
    CourseId,
    Enrollment,
    EnrollmentStatus,
    Phone,
    SeatClaim,
    UserIdentity,
    count_active,
)
from enrollments.domain.errors import (
    AlreadyEnrolledError,
    AuthenticationRequiredError,
    CourseCancelledError,
    CourseFullError,
    CourseNotFoundError,
    EnrollmentCancelledError,
    InvalidPhoneError,
)
from enrollments.services.collaborators import AdmissionObserver, PhoneProvider
from enrollments.services.dispatch import TaskDispatcher
from enrollments.stores.interfaces import (
    COURSES,
    ENROLLMENTS,
    USERS,
    Document,
    DocumentStore,
    Filter,
)
from enrollments.stores.records import (
    course_from_document,
    enrollment_from_document,
    profile_from_document,
    seat_claims_from_documents,
)

logger = logging.getLogger(__name__)


class AdmissionService:
    """Creates enrollments subject to capacity and duplicate checks."""

    def __init__(
        self,
        store: DocumentStore,
        phone_provider: PhoneProvider,
        dispatcher: TaskDispatcher,
        observers: Sequence[AdmissionObserver] = (),
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._phone_provider = phone_provider
        self._dispatcher = dispatcher
        self._observers = tuple(observers)
        self._clock = clock

    def enroll(self, course_id: str, user: UserIdentity | None) -> Enrollment:
        """Admit ``user`` into a course and return the new pending enrollment.

        Raises:
            AuthenticationRequiredError: If there is no signed-in user.
            CourseNotFoundError: If the course does not exist.
            CourseCancelledError: If the course was cancelled.
            CourseFullError: If a fresh count of active enrollments reaches capacity.
            AlreadyEnrolledError: If the user holds a non-cancelled enrollment.
            EnrollmentCancelledError: If no phone is on file and none was given.
            InvalidPhoneError: If the given phone cannot be normalized.
            StoreUnavailableError: If any read or the write fails.
        """
        if user is None:
            raise AuthenticationRequiredError()

        course = self._load_course(course_id)
        if course.is_cancelled:
            raise CourseCancelledError(course_id)

        occupied = self._count_occupied(course.id)
        if occupied >= course.capacity.value:
            logger.info(
                "Rejecting admission of %s to %s: %d/%d seats taken",
                user.id,
                course.id,
                occupied,
                course.capacity.value,
            )
            raise CourseFullError(course.id.value, occupied, course.capacity.value)

        existing = self._existing_enrollment(course.id, user)
        if existing is not None:
            raise AlreadyEnrolledError(course.id.value, existing.id.value)

        phone = self._resolve_phone(user)

        data = {
            "courseId": course.id.value,
            "courseName": course.name,
            "userId": user.id,
            "userEmail": user.email,
            "userName": user.name,
            "phone": phone,
            "amount": str(course.price),
            "enrolledAt": self._clock().isoformat(),
            "status": EnrollmentStatus.PENDING.value,
            "paymentMethod": None,
            "proofReference": None,
        }
        enrollment_id = self._store.create(ENROLLMENTS, data)
        enrollment = enrollment_from_document(Document(id=enrollment_id, data=data))
        logger.info("Enrollment %s created for %s in %s", enrollment_id, user.id, course.id)

        for observer in self._observers:
            self._dispatcher.submit(observer.name, observer.on_admitted, enrollment, course)
        return enrollment

    def _load_course(self, course_id: str) -> Course:
        try:
            key = CourseId.from_string(course_id)
        except ValueError:
            raise CourseNotFoundError(course_id) from None
        document = self._store.get(COURSES, key.value)
        if document is None:
            raise CourseNotFoundError(course_id)
        return course_from_document(document)

    def _count_occupied(self, course_id: CourseId) -> int:
        documents = self._store.query(ENROLLMENTS, [Filter.eq("courseId", course_id.value)])
        return count_active(seat_claims_from_documents(documents), course_id)

    def _existing_enrollment(self, course_id: CourseId, user: UserIdentity) -> SeatClaim | None:
        documents = self._store.query(
            ENROLLMENTS,
            [Filter.eq("userId", user.id), Filter.eq("courseId", course_id.value)],
        )
        for claim in seat_claims_from_documents(documents):
            if claim.status is not EnrollmentStatus.CANCELLED:
                return claim
        return None

    def _resolve_phone(self, user: UserIdentity) -> str:
        document = self._store.get(USERS, user.id)
        if document is not None:
            profile = profile_from_document(document)
            if profile.phone:
                return profile.phone

        raw = self._phone_provider.request_phone(user)
        if raw is None:
            raise EnrollmentCancelledError()
        try:
            phone = Phone.parse(raw)
        except ValueError as exc:
            raise InvalidPhoneError(str(exc)) from exc

        if document is None:
            self._store.put(
                USERS,
                user.id,
                {"email": user.email, "displayName": user.display_name, "phone": phone.value},
            )
        else:
            self._store.update(USERS, user.id, {"phone": phone.value})
        return phone.value
