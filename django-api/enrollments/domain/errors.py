"""Domain error codes for the enrollments module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    COURSE_CANCELLED = "COURSE_CANCELLED"
    COURSE_FULL = "COURSE_FULL"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ENROLLMENT_CANCELLED = "ENROLLMENT_CANCELLED"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    INVALID_PHONE = "INVALID_PHONE"
    INVALID_RECORD = "INVALID_RECORD"
    INVALID_COURSE = "INVALID_COURSE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    PROOF_TOO_LARGE = "PROOF_TOO_LARGE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    SUBSCRIPTION_ERROR = "SUBSCRIPTION_ERROR"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class AuthenticationRequiredError(DomainError):
    """Raised when an operation needs a signed-in user."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.AUTHENTICATION_REQUIRED,
            message="Debes iniciar sesión para inscribirte",
        )


class CourseNotFoundError(DomainError):
    """Raised when a course is not found."""

    def __init__(self, course_id: str) -> None:
        super().__init__(
            code=ErrorCode.COURSE_NOT_FOUND,
            message="Curso no encontrado",
        )
        object.__setattr__(self, "course_id", course_id)


class CourseCancelledError(DomainError):
    """Raised when admission targets a cancelled course."""

    def __init__(self, course_id: str) -> None:
        super().__init__(
            code=ErrorCode.COURSE_CANCELLED,
            message="El curso fue cancelado",
        )
        object.__setattr__(self, "course_id", course_id)


class CourseFullError(DomainError):
    """Raised when the fresh occupancy read reaches the course capacity."""

    def __init__(self, course_id: str, occupied: int, capacity: int) -> None:
        super().__init__(
            code=ErrorCode.COURSE_FULL,
            message="El curso está completo",
        )
        object.__setattr__(self, "course_id", course_id)
        object.__setattr__(self, "occupied", occupied)
        object.__setattr__(self, "capacity", capacity)


class AlreadyEnrolledError(DomainError):
    """Raised when the user already holds a non-cancelled enrollment."""

    def __init__(self, course_id: str, enrollment_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_ENROLLED,
            message="Ya estás inscripto en este curso",
        )
        object.__setattr__(self, "course_id", course_id)
        object.__setattr__(self, "enrollment_id", enrollment_id)


class EnrollmentCancelledError(DomainError):
    """Raised when the user aborts the phone prompt."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.ENROLLMENT_CANCELLED,
            message="Inscripción cancelada: se requiere un teléfono de contacto",
        )


class EnrollmentNotFoundError(DomainError):
    """Raised when an enrollment is not found or not visible to the caller."""

    def __init__(self, enrollment_id: str) -> None:
        super().__init__(
            code=ErrorCode.ENROLLMENT_NOT_FOUND,
            message="Inscripción no encontrada",
        )
        object.__setattr__(self, "enrollment_id", enrollment_id)


class InvalidPhoneError(DomainError):
    """Raised when a supplied phone number cannot be normalized."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_PHONE,
            message=f"Teléfono inválido: {reason}",
        )


class InvalidRecordError(DomainError):
    """Raised when a stored document does not match its schema."""

    def __init__(self, collection: str, document_id: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_RECORD,
            message="Registro con formato inválido",
        )
        object.__setattr__(self, "collection", collection)
        object.__setattr__(self, "document_id", document_id)
        object.__setattr__(self, "reason", reason)


class InvalidCourseError(DomainError):
    """Raised when course fields submitted by an administrator are invalid."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_COURSE,
            message=f"{field}: {reason}",
        )
        object.__setattr__(self, "field", field)


class InvalidStatusTransitionError(DomainError):
    """Raised when an enrollment cannot move to the requested status."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"No se puede pasar de '{current}' a '{requested}'",
        )


class ProofTooLargeError(DomainError):
    """Raised when an uploaded payment proof exceeds the inline storage limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            code=ErrorCode.PROOF_TOO_LARGE,
            message=f"El archivo es muy grande. Máximo {limit // 1024} KB permitido",
        )
        object.__setattr__(self, "size", size)


class StoreUnavailableError(DomainError):
    """Raised when the document store cannot serve a read or write."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="El servicio no está disponible, intenta nuevamente",
        )
        object.__setattr__(self, "operation", operation)


class SubscriptionError(DomainError):
    """Reported to a live view when its subscription stream breaks."""

    def __init__(self, collection: str) -> None:
        super().__init__(
            code=ErrorCode.SUBSCRIPTION_ERROR,
            message="Se perdió la actualización en vivo",
        )
        object.__setattr__(self, "collection", collection)


class NotificationError(DomainError):
    """Raised when the notification endpoint rejects or fails a delivery."""

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.NOTIFICATION_FAILED,
            message=f"No se pudo enviar la notificación '{kind}'",
        )
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "reason", reason)
