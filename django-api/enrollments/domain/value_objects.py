"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Self

_DOCUMENT_ID = re.compile(r"^[A-Za-z0-9_\-@.]{1,128}$")


@dataclass(frozen=True)
class CourseId:
    """Unique identifier for a Course document."""

    value: str

    @classmethod
    def from_string(cls, value: str) -> Self:
        if not isinstance(value, str) or not _DOCUMENT_ID.match(value):
            raise ValueError(f"Invalid document id: {value!r}")
        return cls(value=value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EnrollmentId:
    """Unique identifier for an Enrollment document."""

    value: str

    @classmethod
    def from_string(cls, value: str) -> Self:
        if not isinstance(value, str) or not _DOCUMENT_ID.match(value):
            raise ValueError(f"Invalid document id: {value!r}")
        return cls(value=value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def parse(cls, value: object) -> Self:
        try:
            return cls(amount=Decimal(str(value)))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


class EnrollmentStatus(str, Enum):
    """Closed set of enrollment states.

    Stored values the portal does not recognize map to UNRECOGNIZED so they
    are handled explicitly instead of compared as free-form strings. Matching
    is exact, the same way the store's ``status in (...)`` filters match, so
    "Pending" is unrecognized everywhere.
    """

    PENDING = "pending"
    PAID = "paid"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, value: object) -> "EnrollmentStatus":
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return cls.UNRECOGNIZED
        return cls.UNRECOGNIZED

    @property
    def is_active(self) -> bool:
        """Whether an enrollment in this state occupies a seat."""
        match self:
            case EnrollmentStatus.PENDING | EnrollmentStatus.PAID | EnrollmentStatus.CONFIRMED:
                return True
            case EnrollmentStatus.CANCELLED | EnrollmentStatus.UNRECOGNIZED:
                return False

    @property
    def label(self) -> str:
        match self:
            case EnrollmentStatus.PENDING:
                return "Pendiente de pago"
            case EnrollmentStatus.PAID:
                return "Pago enviado"
            case EnrollmentStatus.CONFIRMED:
                return "Confirmado"
            case EnrollmentStatus.CANCELLED:
                return "Cancelado"
            case EnrollmentStatus.UNRECOGNIZED:
                return "Desconocido"


ACTIVE_STATUSES: tuple[EnrollmentStatus, ...] = tuple(
    status for status in EnrollmentStatus if status.is_active
)


class CourseStatus(str, Enum):
    """Administrative state of a course."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Phone:
    """Contact phone number, normalized to digits with an optional leading '+'."""

    value: str

    MIN_DIGITS = 8
    MAX_DIGITS = 15

    def __post_init__(self) -> None:
        digits = self.value.lstrip("+")
        if not digits.isdigit():
            raise ValueError("Phone number must contain only digits")
        if not self.MIN_DIGITS <= len(digits) <= self.MAX_DIGITS:
            raise ValueError("Phone number has an invalid length")

    @classmethod
    def parse(cls, raw: str | None) -> Self:
        if not raw or not str(raw).strip():
            raise ValueError("Phone number is required")
        text = re.sub(r"[\s\-().]", "", str(raw).strip())
        prefix = "+" if text.startswith("+") else ""
        return cls(value=prefix + text.lstrip("+"))

    def __str__(self) -> str:
        return self.value
