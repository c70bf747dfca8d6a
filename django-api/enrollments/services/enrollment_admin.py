"""Enrollment lifecycle after admission: payment proof, confirmation, cancellation."""

import base64
import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from django.utils import timezone

from enrollments.domain import Enrollment, EnrollmentId, EnrollmentStatus, UserIdentity
from enrollments.domain.errors import (
    EnrollmentNotFoundError,
    InvalidStatusTransitionError,
    ProofTooLargeError,
)
from enrollments.services.activity import ActivityLogger
from enrollments.services.collaborators import AdmissionObserver
from enrollments.services.dispatch import TaskDispatcher
from enrollments.stores.interfaces import (
    ENROLLMENTS,
    MOVEMENTS,
    DocumentNotFound,
    DocumentStore,
)
from enrollments.stores.records import enrollment_from_document

logger = logging.getLogger(__name__)

DEFAULT_PROOF_MAX_BYTES = 1024 * 1024


def can_transition(current: EnrollmentStatus, requested: EnrollmentStatus) -> bool:
    match (current, requested):
        case (EnrollmentStatus.PENDING, EnrollmentStatus.PAID):
            return True
        case (EnrollmentStatus.PENDING | EnrollmentStatus.PAID, EnrollmentStatus.CONFIRMED):
            return True
        case (
            EnrollmentStatus.PENDING | EnrollmentStatus.PAID | EnrollmentStatus.CONFIRMED,
            EnrollmentStatus.CANCELLED,
        ):
            return True
        case _:
            return False


class EnrollmentAdminService:
    """Status changes on existing enrollments."""

    def __init__(
        self,
        store: DocumentStore,
        dispatcher: TaskDispatcher,
        activity: ActivityLogger,
        observers: Sequence[AdmissionObserver] = (),
        proof_max_bytes: int = DEFAULT_PROOF_MAX_BYTES,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._activity = activity
        self._observers = tuple(observers)
        self._proof_max_bytes = proof_max_bytes
        self._clock = clock

    def get(self, enrollment_id: str) -> Enrollment:
        try:
            key = EnrollmentId.from_string(enrollment_id)
        except ValueError:
            raise EnrollmentNotFoundError(enrollment_id) from None
        document = self._store.get(ENROLLMENTS, key.value)
        if document is None:
            raise EnrollmentNotFoundError(enrollment_id)
        return enrollment_from_document(document)

    def submit_payment_proof(
        self,
        enrollment_id: str,
        user: UserIdentity,
        content: bytes,
        content_type: str,
        payment_method: str,
        comments: str | None = None,
    ) -> Enrollment:
        """Attach a payment proof to the caller's enrollment and mark it paid.

        The proof is stored inline as a base64 ``data:`` URL, which is why its
        size is capped.
        """
        enrollment = self.get(enrollment_id)
        if enrollment.user_id != user.id:
            raise EnrollmentNotFoundError(enrollment_id)
        if len(content) > self._proof_max_bytes:
            raise ProofTooLargeError(len(content), self._proof_max_bytes)
        self._check_transition(enrollment, EnrollmentStatus.PAID)

        encoded = base64.b64encode(content).decode("ascii")
        media_type = content_type or "application/octet-stream"
        return self._apply(
            enrollment,
            EnrollmentStatus.PAID,
            {
                "proofReference": f"data:{media_type};base64,{encoded}",
                "paymentMethod": payment_method,
                "paymentComments": comments or None,
                "proofUploadedAt": self._clock().isoformat(),
            },
            actor=user.email,
        )

    def confirm(self, enrollment_id: str, admin: UserIdentity) -> Enrollment:
        """Confirm an enrollment and book its income in the accounting ledger."""
        enrollment = self.get(enrollment_id)
        self._check_transition(enrollment, EnrollmentStatus.CONFIRMED)
        confirmed = self._apply(
            enrollment,
            EnrollmentStatus.CONFIRMED,
            {"confirmedAt": self._clock().isoformat()},
            actor=admin.email,
        )
        self._dispatcher.submit("income-movement", self._record_income, confirmed)
        return confirmed

    def cancel(self, enrollment_id: str, admin: UserIdentity) -> Enrollment:
        enrollment = self.get(enrollment_id)
        self._check_transition(enrollment, EnrollmentStatus.CANCELLED)
        return self._apply(
            enrollment,
            EnrollmentStatus.CANCELLED,
            {"cancelledAt": self._clock().isoformat()},
            actor=admin.email,
        )

    def delete(self, enrollment_id: str, admin: UserIdentity) -> None:
        enrollment = self.get(enrollment_id)
        try:
            self._store.delete(ENROLLMENTS, enrollment.id.value)
        except DocumentNotFound:
            raise EnrollmentNotFoundError(enrollment_id) from None
        logger.info("Enrollment %s deleted by %s", enrollment_id, admin.email)
        self._dispatcher.submit(
            "activity-log",
            self._activity.log_admin,
            "enrollment_deleted",
            {"enrollmentId": enrollment_id, "courseId": enrollment.course_id.value},
            admin.email,
        )

    def _check_transition(self, enrollment: Enrollment, requested: EnrollmentStatus) -> None:
        if not can_transition(enrollment.status, requested):
            raise InvalidStatusTransitionError(enrollment.status.value, requested.value)

    def _apply(
        self,
        enrollment: Enrollment,
        status: EnrollmentStatus,
        extra: dict,
        actor: str,
    ) -> Enrollment:
        patch = {"status": status.value, **extra}
        try:
            self._store.update(ENROLLMENTS, enrollment.id.value, patch)
        except DocumentNotFound:
            raise EnrollmentNotFoundError(enrollment.id.value) from None
        document = self._store.get(ENROLLMENTS, enrollment.id.value)
        if document is None:
            raise EnrollmentNotFoundError(enrollment.id.value)
        updated = enrollment_from_document(document)
        logger.info(
            "Enrollment %s moved %s -> %s by %s",
            enrollment.id,
            enrollment.status.value,
            status.value,
            actor,
        )
        for observer in self._observers:
            self._dispatcher.submit(observer.name, observer.on_status_changed, updated)
        return updated

    def _record_income(self, enrollment: Enrollment) -> str:
        now = self._clock().isoformat()
        return self._store.create(
            MOVEMENTS,
            {
                "type": "income",
                "category": "course",
                "description": f"Inscripción a curso: {enrollment.course_name}",
                "amount": str(enrollment.amount),
                "date": now,
                "notes": f"Alumno: {enrollment.user_name} ({enrollment.user_email})",
                "origin": "automatic",
                "enrollmentId": enrollment.id.value,
                "createdBy": "sistema",
                "createdAt": now,
            },
        )
