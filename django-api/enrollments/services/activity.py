"""Audit trail of user and administrator actions, kept in the ``logs`` collection."""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from django.utils import timezone

from enrollments.domain import Course, Enrollment
from enrollments.services.collaborators import AdmissionObserver
from enrollments.stores.interfaces import LOGS, DocumentStore

logger = logging.getLogger(__name__)


class ActivityLogger:
    def __init__(
        self, store: DocumentStore, clock: Callable[[], datetime] = timezone.now
    ) -> None:
        self._store = store
        self._clock = clock

    def log(
        self,
        action: str,
        details: Mapping[str, Any] | None = None,
        *,
        module: str = "general",
        priority: str = "normal",
        category: str = "user_action",
        user_email: str = "sistema",
    ) -> str:
        entry = {
            "action": action,
            "details": dict(details or {}),
            "module": module,
            "priority": priority,
            "category": category,
            "userEmail": user_email,
            "timestamp": self._clock().isoformat(),
        }
        entry_id = self._store.create(LOGS, entry)
        logger.debug("[%s] %s %s", action, user_email, entry["details"])
        return entry_id

    def log_enrollment(self, action: str, details: Mapping[str, Any], user_email: str) -> str:
        return self.log(
            action, details, module="inscripciones", category="enrollment", user_email=user_email
        )

    def log_course(self, action: str, details: Mapping[str, Any], user_email: str) -> str:
        return self.log(
            action, details, module="cursos", category="course_management", user_email=user_email
        )

    def log_admin(self, action: str, details: Mapping[str, Any], user_email: str) -> str:
        return self.log(
            action,
            details,
            module="admin",
            category="admin_action",
            priority="high",
            user_email=user_email,
        )


class ActivityLogObserver(AdmissionObserver):
    name = "activity-log"

    def __init__(self, activity: ActivityLogger) -> None:
        self._activity = activity

    def on_admitted(self, enrollment: Enrollment, course: Course) -> None:
        self._activity.log_enrollment(
            "enrollment_created",
            {
                "enrollmentId": enrollment.id.value,
                "courseId": course.id.value,
                "courseName": course.name,
            },
            user_email=enrollment.user_email,
        )

    def on_status_changed(self, enrollment: Enrollment) -> None:
        self._activity.log_enrollment(
            "enrollment_status_changed",
            {"enrollmentId": enrollment.id.value, "status": enrollment.status.value},
            user_email=enrollment.user_email,
        )
