"""E-mail notifications through the external Apps Script endpoint.

The script URL and the per-notification switches live in the
``configuration`` collection (documents ``apps_script`` and ``delivery``),
so administrators can change them without a deploy. Requests are sent as
``text/plain`` JSON, which is what the script accepts.
"""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests
from django.utils import timezone

from enrollments.domain import Course, CourseId, Enrollment, EnrollmentStatus
from enrollments.domain.errors import NotificationError
from enrollments.services.collaborators import AdmissionObserver
from enrollments.stores.interfaces import CONFIGURATION, COURSES, DocumentStore
from enrollments.stores.records import course_from_document

logger = logging.getLogger(__name__)

SCRIPT_DOCUMENT = "apps_script"
DELIVERY_DOCUMENT = "delivery"

NEW_ENROLLMENT = "nueva_inscripcion"
ENROLLMENT_CONFIRMATION = "confirmacion_inscripcion"
COURSE_CANCELLATION = "cancelacion_curso"
DEFAULT_CANCELLATION_REASON = "Cancelación administrativa"


@dataclass(frozen=True)
class ScriptConfig:
    url: str
    active: bool


class NotificationService:
    """Sends notification payloads to the configured script."""

    def __init__(
        self,
        store: DocumentStore,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._session = session or requests.Session()
        self._timeout = timeout
        self._clock = clock

    def script_config(self) -> ScriptConfig | None:
        document = self._store.get(CONFIGURATION, SCRIPT_DOCUMENT)
        if document is None or not document.data.get("url"):
            return None
        return ScriptConfig(url=str(document.data["url"]), active=bool(document.data.get("active")))

    def is_enabled(self, flag: str, recipient: str) -> bool:
        document = self._store.get(CONFIGURATION, DELIVERY_DOCUMENT)
        if document is None:
            return False
        key = "adminNotifications" if recipient == "admin" else "studentNotifications"
        flags = document.data.get(key) or {}
        return flags.get(flag) is True

    def send(self, kind: str, payload: Mapping[str, Any]) -> dict:
        """Post one notification; returns the script's JSON reply.

        Raises:
            NotificationError: If the script is unreachable or reports failure.
        """
        config = self.script_config()
        if config is None or not config.active:
            raise NotificationError(kind, "script not configured or inactive")

        body = {"tipo": kind, **payload, "timestamp": self._clock().isoformat()}
        logger.info("Sending %s notification", kind)
        try:
            response = self._session.post(
                config.url,
                data=json.dumps(body, default=str),
                headers={"Content-Type": "text/plain"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NotificationError(kind, str(exc)) from exc

        if not result.get("success"):
            raise NotificationError(kind, str(result.get("error") or "unknown script error"))
        return result

    def notify_new_enrollment(self, enrollment: Enrollment, course: Course) -> bool:
        """Tell administrators about a new enrollment. Returns False when disabled."""
        if not self.is_enabled("newEnrollment", "admin"):
            logger.info("New-enrollment notification disabled")
            return False
        self.send(
            NEW_ENROLLMENT,
            {
                "alumno": {
                    "nombre": enrollment.user_name,
                    "email": enrollment.user_email,
                    "telefono": enrollment.phone,
                },
                "curso": _course_payload(course, enrollment),
                "pago": {
                    "estado": enrollment.status.value,
                    "metodo": enrollment.payment_method,
                },
            },
        )
        return True

    def send_enrollment_confirmation(self, enrollment: Enrollment, course: Course) -> bool:
        """Confirm an enrollment to the student. Returns False when disabled."""
        if not self.is_enabled("enrollmentConfirmation", "student"):
            logger.info("Enrollment confirmation e-mail disabled")
            return False
        self.send(
            ENROLLMENT_CONFIRMATION,
            {
                "alumno": {"nombre": enrollment.user_name, "email": enrollment.user_email},
                "curso": _course_payload(course, enrollment),
            },
        )
        return True

    def notify_payment_received(self, enrollment: Enrollment, course: Course) -> bool:
        """Tell administrators a payment proof arrived. Returns False when disabled.

        The script renders payment alerts with the new-enrollment template.
        """
        if not self.is_enabled("paymentReceived", "admin"):
            logger.info("Payment-received notification disabled")
            return False
        self.send(
            NEW_ENROLLMENT,
            {
                "alumno": {"nombre": enrollment.user_name, "email": enrollment.user_email},
                "curso": _course_payload(course, enrollment),
                "pago": {
                    "estado": "pagado",
                    "metodo": enrollment.payment_method,
                    "fecha": self._clock().isoformat(),
                    "monto": str(enrollment.amount),
                },
            },
        )
        return True

    def send_cancellation(
        self, enrollment: Enrollment, course: Course, reason: str | None = None
    ) -> bool:
        """Tell the student an administrator cancelled the enrollment."""
        if not self.is_enabled("adminCancellation", "student"):
            logger.info("Cancellation e-mail disabled")
            return False
        self.send(
            COURSE_CANCELLATION,
            {
                "alumno": {"nombre": enrollment.user_name, "email": enrollment.user_email},
                "curso": {"nombre": course.name, "fecha": course.scheduled_at.isoformat()},
                "cancelacion": {"motivo": reason or DEFAULT_CANCELLATION_REASON},
            },
        )
        return True


def _course_payload(course: Course, enrollment: Enrollment) -> dict:
    return {
        "nombre": course.name,
        "fecha": course.scheduled_at.isoformat(),
        "precio": str(enrollment.amount),
    }


class NotificationObserver(AdmissionObserver):
    """Sends the e-mails that follow admissions and status changes."""

    name = "notifications"

    def __init__(self, notifications: NotificationService, store: DocumentStore) -> None:
        self._notifications = notifications
        self._store = store

    def on_admitted(self, enrollment: Enrollment, course: Course) -> None:
        self._notifications.notify_new_enrollment(enrollment, course)

    def on_status_changed(self, enrollment: Enrollment) -> None:
        match enrollment.status:
            case EnrollmentStatus.PAID:
                send = self._notifications.notify_payment_received
            case EnrollmentStatus.CONFIRMED:
                send = self._notifications.send_enrollment_confirmation
            case EnrollmentStatus.CANCELLED:
                send = self._notifications.send_cancellation
            case EnrollmentStatus.PENDING | EnrollmentStatus.UNRECOGNIZED:
                return
        course = self._course(enrollment.course_id)
        if course is None:
            logger.warning(
                "Course %s gone, skipping %s e-mail", enrollment.course_id, enrollment.status.value
            )
            return
        send(enrollment, course)

    def _course(self, course_id: CourseId) -> Course | None:
        document = self._store.get(COURSES, course_id.value)
        return course_from_document(document) if document is not None else None
