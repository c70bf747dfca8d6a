"""Per-student aggregate kept in ``enrollee_profiles``, keyed by e-mail.

The aggregate is always rebuilt from the student's enrollment documents, so
a missed update is repaired by the next one.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from enrollments.domain import Course, Enrollment, EnrollmentStatus, Money
from enrollments.services.collaborators import AdmissionObserver
from enrollments.stores.interfaces import ENROLLEE_PROFILES, ENROLLMENTS, DocumentStore, Filter
from enrollments.stores.records import enrollments_from_documents

logger = logging.getLogger(__name__)


def summarize(email: str, enrollments: list[Enrollment], now: datetime) -> dict:
    counts = Counter(enrollment.status for enrollment in enrollments)
    invested = sum(
        (
            e.amount.amount
            for e in enrollments
            if e.status in (EnrollmentStatus.PAID, EnrollmentStatus.CONFIRMED)
        ),
        Decimal("0"),
    )
    pending = sum(
        (e.amount.amount for e in enrollments if e.status is EnrollmentStatus.PENDING),
        Decimal("0"),
    )
    dated = sorted(
        (e for e in enrollments if e.enrolled_at is not None), key=lambda e: e.enrolled_at
    )
    latest = dated[-1] if dated else (enrollments[-1] if enrollments else None)
    return {
        "email": email,
        "name": latest.user_name if latest else "",
        "phone": next((e.phone for e in reversed(dated) if e.phone), None),
        "totalEnrollments": len(enrollments),
        "confirmedCourses": counts[EnrollmentStatus.CONFIRMED],
        "pendingCourses": counts[EnrollmentStatus.PENDING],
        "paidCourses": counts[EnrollmentStatus.PAID],
        "cancelledCourses": counts[EnrollmentStatus.CANCELLED],
        "amountInvested": str(Money(invested)),
        "amountPending": str(Money(pending)),
        "firstEnrollmentAt": dated[0].enrolled_at.isoformat() if dated else None,
        "lastEnrollmentAt": dated[-1].enrolled_at.isoformat() if dated else None,
        "updatedAt": now.isoformat(),
        "courses": [
            {
                "courseId": e.course_id.value,
                "courseName": e.course_name,
                "status": e.status.value,
                "amount": str(e.amount),
                "paymentMethod": e.payment_method,
            }
            for e in enrollments
        ],
    }


class ProfileAggregator(AdmissionObserver):
    name = "profile-aggregation"

    def __init__(
        self, store: DocumentStore, clock: Callable[[], datetime] = timezone.now
    ) -> None:
        self._store = store
        self._clock = clock

    def refresh(self, email: str) -> dict:
        documents = self._store.query(ENROLLMENTS, [Filter.eq("userEmail", email)])
        summary = summarize(email, enrollments_from_documents(documents), self._clock())
        self._store.put(ENROLLEE_PROFILES, email, summary)
        logger.debug("Profile %s rebuilt from %d enrollments", email, summary["totalEnrollments"])
        return summary

    def on_admitted(self, enrollment: Enrollment, course: Course) -> None:
        if enrollment.user_email:
            self.refresh(enrollment.user_email)

    def on_status_changed(self, enrollment: Enrollment) -> None:
        if enrollment.user_email:
            self.refresh(enrollment.user_email)
