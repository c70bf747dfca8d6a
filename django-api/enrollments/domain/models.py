"""Domain models representing persisted state.

These are pure domain objects built from store documents by
enrollments/stores/records.py. Nothing here knows about Django.
"""

from dataclasses import dataclass, field
from datetime import datetime

from enrollments.domain.value_objects import (
    Capacity,
    CourseId,
    CourseStatus,
    EnrollmentId,
    EnrollmentStatus,
    Money,
)


@dataclass(frozen=True)
class Course:
    """Domain representation of a Course."""

    id: CourseId
    name: str
    description: str
    scheduled_at: datetime
    price: Money
    capacity: Capacity
    status: CourseStatus = CourseStatus.ACTIVE
    legacy_enrolled_count: int = 0

    @property
    def is_cancelled(self) -> bool:
        return self.status is CourseStatus.CANCELLED


@dataclass(frozen=True)
class Enrollment:
    """Domain representation of an Enrollment."""

    id: EnrollmentId
    course_id: CourseId
    course_name: str
    user_id: str
    user_email: str
    user_name: str
    phone: str | None
    amount: Money
    enrolled_at: datetime | None
    status: EnrollmentStatus
    payment_method: str | None = None
    proof_reference: str | None = None
    payment_comments: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class SeatClaim:
    """The part of an enrollment that decides occupancy and duplicates.

    Built from the course, user and status fields alone, so a record that is
    damaged elsewhere still holds its seat.
    """

    id: EnrollmentId
    course_id: CourseId
    user_id: str | None
    status: EnrollmentStatus

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class UserIdentity:
    """Signed-in user as exposed by the identity provider."""

    id: str
    email: str
    display_name: str = ""

    @property
    def name(self) -> str:
        return self.display_name or self.email


@dataclass(frozen=True)
class UserProfile:
    """Profile document kept per user (one-time contact details)."""

    user_id: str
    email: str
    display_name: str
    phone: str | None


@dataclass(frozen=True)
class CapacityPatch:
    """Availability update pushed to the rendering collaborator."""

    course_id: str
    occupied: int
    available: int
    is_full: bool

    def as_dict(self) -> dict:
        return {
            "course_id": self.course_id,
            "occupied": self.occupied,
            "available": self.available,
            "is_full": self.is_full,
        }


@dataclass(frozen=True)
class CapacityView:
    """Derived occupancy of a course, never persisted as ground truth."""

    course_id: CourseId
    capacity: int
    occupied: int
    enrollment_ids: tuple[str, ...] = field(default=(), compare=False)

    @property
    def available(self) -> int:
        return max(self.capacity - self.occupied, 0)

    @property
    def is_full(self) -> bool:
        return self.capacity - self.occupied <= 0

    def as_patch(self) -> CapacityPatch:
        return CapacityPatch(
            course_id=self.course_id.value,
            occupied=self.occupied,
            available=self.available,
            is_full=self.is_full,
        )
