"""Schema boundary between store documents and domain models.

Documents arrive as loosely shaped mappings (JSON from the database or
whatever a test put in memory). Nothing past this module sees them: every
read is converted here into a typed domain object, and malformed documents
are rejected with InvalidRecordError. Seat claims are the exception: they
read only course, user and status, so occupancy never depends on the other
fields being well formed.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from enrollments.domain import (
    Capacity,
    Course,
    CourseId,
    CourseStatus,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    SeatClaim,
    UserProfile,
)
from enrollments.domain.errors import InvalidRecordError
from enrollments.stores.interfaces import COURSES, ENROLLMENTS, USERS, Document

logger = logging.getLogger(__name__)

LEGACY_COUNTER_FIELD = "inscriptos"


class _Reader:
    """Typed accessors over one document that raise InvalidRecordError."""

    def __init__(self, collection: str, document: Document) -> None:
        self.collection = collection
        self.document = document
        self.data: Mapping[str, Any] = document.data or {}

    def fail(self, reason: str) -> InvalidRecordError:
        return InvalidRecordError(self.collection, self.document.id, reason)

    def text(self, name: str, default: str | None = None) -> str:
        value = self.data.get(name)
        if value is None or value == "":
            if default is None:
                raise self.fail(f"missing field '{name}'")
            return default
        if not isinstance(value, str):
            raise self.fail(f"field '{name}' must be a string")
        return value

    def optional_text(self, name: str) -> str | None:
        value = self.data.get(name)
        if value is None or value == "":
            return None
        return str(value)

    def integer(self, name: str, default: int | None = None) -> int:
        value = self.data.get(name, default)
        if value is None:
            raise self.fail(f"missing field '{name}'")
        if isinstance(value, bool):
            raise self.fail(f"field '{name}' must be an integer")
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise self.fail(f"field '{name}' must be an integer") from exc
        if number != Decimal(str(value)):
            raise self.fail(f"field '{name}' must be an integer")
        return number

    def money(self, name: str, default: object = None) -> Money:
        value = self.data.get(name, default)
        if value is None or isinstance(value, bool):
            raise self.fail(f"missing field '{name}'")
        try:
            return Money.parse(value)
        except ValueError as exc:
            raise self.fail(f"field '{name}' is not a valid amount") from exc

    def timestamp(self, name: str, required: bool = True) -> datetime | None:
        value = self.data.get(name)
        if value is None:
            if required:
                raise self.fail(f"missing field '{name}'")
            return None
        try:
            return parse_timestamp(value)
        except (TypeError, ValueError) as exc:
            raise self.fail(f"field '{name}' is not a timestamp") from exc


def parse_timestamp(value: object) -> datetime:
    """Accept datetimes, ISO-8601 strings and ``{"seconds": n}`` mappings."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value)
    elif isinstance(value, Mapping) and "seconds" in value:
        moment = datetime.fromtimestamp(int(value["seconds"]), tz=timezone.utc)
    else:
        raise TypeError(f"unsupported timestamp value {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def course_from_document(document: Document) -> Course:
    reader = _Reader(COURSES, document)
    capacity = reader.integer("capacity")
    if capacity <= 0:
        raise reader.fail("capacity must be a positive integer")
    raw_status = reader.optional_text("status")
    try:
        status = CourseStatus(raw_status) if raw_status else CourseStatus.ACTIVE
    except ValueError as exc:
        raise reader.fail(f"unknown course status '{raw_status}'") from exc
    try:
        course_id = CourseId.from_string(document.id)
    except ValueError as exc:
        raise reader.fail("invalid document id") from exc
    return Course(
        id=course_id,
        name=reader.text("name"),
        description=reader.text("description", default=""),
        scheduled_at=reader.timestamp("scheduledAt"),
        price=reader.money("price"),
        capacity=Capacity(capacity),
        status=status,
        legacy_enrolled_count=max(reader.integer(LEGACY_COUNTER_FIELD, default=0), 0),
    )


def enrollment_from_document(document: Document) -> Enrollment:
    reader = _Reader(ENROLLMENTS, document)
    status = EnrollmentStatus.parse(reader.data.get("status"))
    if status is EnrollmentStatus.UNRECOGNIZED:
        logger.warning(
            "Enrollment %s has unrecognized status %r",
            document.id,
            reader.data.get("status"),
        )
    try:
        enrollment_id = EnrollmentId.from_string(document.id)
        course_id = CourseId.from_string(reader.text("courseId"))
    except ValueError as exc:
        raise reader.fail("invalid document reference") from exc
    return Enrollment(
        id=enrollment_id,
        course_id=course_id,
        course_name=reader.text("courseName", default=""),
        user_id=reader.text("userId"),
        user_email=reader.text("userEmail", default=""),
        user_name=reader.text("userName", default=""),
        phone=reader.optional_text("phone"),
        amount=reader.money("amount", default=0),
        enrolled_at=reader.timestamp("enrolledAt", required=False),
        status=status,
        payment_method=reader.optional_text("paymentMethod"),
        proof_reference=reader.optional_text("proofReference"),
        payment_comments=reader.optional_text("paymentComments"),
    )


def enrollments_from_documents(documents: Iterable[Document]) -> list[Enrollment]:
    """Convert a result set, skipping (and logging) malformed documents."""
    enrollments = []
    for document in documents:
        try:
            enrollments.append(enrollment_from_document(document))
        except InvalidRecordError as exc:
            logger.warning("Skipping enrollment %s: %s", document.id, exc.reason)
    return enrollments


def seat_claim_from_document(document: Document) -> SeatClaim:
    """Read only what occupancy needs; never rejects the document."""
    data = document.data or {}
    user_id = data.get("userId")
    return SeatClaim(
        id=EnrollmentId(document.id),
        course_id=CourseId(str(data.get("courseId", ""))),
        user_id=user_id if isinstance(user_id, str) and user_id else None,
        status=EnrollmentStatus.parse(data.get("status")),
    )


def seat_claims_from_documents(documents: Iterable[Document]) -> list[SeatClaim]:
    return [seat_claim_from_document(document) for document in documents]


def courses_from_documents(documents: Iterable[Document]) -> list[Course]:
    courses = []
    for document in documents:
        try:
            courses.append(course_from_document(document))
        except InvalidRecordError as exc:
            logger.warning("Skipping course %s: %s", document.id, exc.reason)
    return courses


def profile_from_document(document: Document) -> UserProfile:
    reader = _Reader(USERS, document)
    return UserProfile(
        user_id=document.id,
        email=reader.text("email", default=""),
        display_name=reader.text("displayName", default=""),
        phone=reader.optional_text("phone"),
    )


def course_data(course: Course) -> dict[str, Any]:
    """Serialize a course back into document fields."""
    return {
        "name": course.name,
        "description": course.description,
        "scheduledAt": course.scheduled_at.astimezone(timezone.utc).isoformat(),
        "price": str(course.price),
        "capacity": course.capacity.value,
        "status": course.status.value,
        LEGACY_COUNTER_FIELD: course.legacy_enrolled_count,
    }
