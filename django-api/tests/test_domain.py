"""Unit tests for domain primitives and occupancy arithmetic.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from enrollments.domain import (
    Capacity,
    CapacityView,
    Course,
    CourseId,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    Phone,
    ScheduleFilter,
    ScheduleState,
    capacity_view,
    count_active,
    matches_schedule,
    schedule_state,
)


def make_course(capacity=3, scheduled_at=datetime(2025, 4, 1, 18, tzinfo=timezone.utc)) -> Course:
    return Course(
        id=CourseId("pastas"),
        name="Pastas caseras",
        description="",
        scheduled_at=scheduled_at,
        price=Money(Decimal("1500")),
        capacity=Capacity(capacity),
    )


def make_enrollment(status, course_id="pastas", number=0) -> Enrollment:
    return Enrollment(
        id=EnrollmentId(f"e{number}"),
        course_id=CourseId(course_id),
        course_name="Pastas caseras",
        user_id=f"user{number}",
        user_email="",
        user_name="",
        phone=None,
        amount=Money(Decimal("1500")),
        enrolled_at=None,
        status=status,
    )


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_zero(self):
        """Money can be created with zero."""
        assert Money(Decimal("0")).amount == Decimal("0")

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-1"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("1500"))) == "1500.00"

    def test_parse_accepts_numbers_and_strings(self):
        """Prices stored as numbers or strings parse to the same amount."""
        assert Money.parse(1500) == Money.parse("1500") == Money.parse(Decimal("1500.0"))

    def test_parse_rejects_garbage(self):
        """Non-numeric amounts raise ValueError."""
        with pytest.raises(ValueError):
            Money.parse("mil pesos")


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_zero(self):
        """Capacity can be created with zero."""
        assert Capacity(0).value == 0

    def test_capacity_rejects_negative_value(self):
        """Capacity raises ValueError for negative value."""
        with pytest.raises(ValueError):
            Capacity(-1)


class TestDocumentIds:
    """Tests for CourseId and EnrollmentId."""

    def test_from_string_accepts_store_generated_ids(self):
        """Ids made of letters, digits and separators are accepted."""
        assert CourseId.from_string("a1B2_c3-d4").value == "a1B2_c3-d4"
        assert str(EnrollmentId.from_string("ana@example.com")) == "ana@example.com"

    @pytest.mark.parametrize("raw", ["", "con espacio", "a/b", "x" * 129])
    def test_from_string_rejects_malformed_ids(self, raw):
        """Malformed ids raise ValueError."""
        with pytest.raises(ValueError):
            CourseId.from_string(raw)


class TestEnrollmentStatus:
    """Tests for the closed enrollment status set."""

    @pytest.mark.parametrize(
        "status, active",
        [
            (EnrollmentStatus.PENDING, True),
            (EnrollmentStatus.PAID, True),
            (EnrollmentStatus.CONFIRMED, True),
            (EnrollmentStatus.CANCELLED, False),
            (EnrollmentStatus.UNRECOGNIZED, False),
        ],
    )
    def test_is_active(self, status, active):
        """Only pending, paid and confirmed occupy a seat."""
        assert status.is_active is active

    def test_parse_unknown_value(self):
        """Unknown, missing and non-string values map to UNRECOGNIZED."""
        assert EnrollmentStatus.parse("refunded") is EnrollmentStatus.UNRECOGNIZED
        assert EnrollmentStatus.parse(None) is EnrollmentStatus.UNRECOGNIZED
        assert EnrollmentStatus.parse(3) is EnrollmentStatus.UNRECOGNIZED

    def test_parse_is_exact(self):
        """Values differing in case or spacing are not recognized."""
        assert EnrollmentStatus.parse("confirmed") is EnrollmentStatus.CONFIRMED
        assert EnrollmentStatus.parse("Pending") is EnrollmentStatus.UNRECOGNIZED
        assert EnrollmentStatus.parse(" paid") is EnrollmentStatus.UNRECOGNIZED


class TestPhone:
    """Tests for Phone normalization."""

    def test_parse_strips_separators(self):
        """Spaces, dashes, dots and parentheses are removed."""
        assert Phone.parse("(011) 5555-1234").value == "01155551234"

    def test_parse_keeps_international_prefix(self):
        """A leading plus sign is preserved."""
        assert Phone.parse("+54 9 11 5555 1234").value == "+5491155551234"

    @pytest.mark.parametrize("raw", ["", "   ", "1234", "11-5555-abcd", "1" * 16])
    def test_parse_rejects_invalid_numbers(self, raw):
        """Empty, short, long or non-numeric phones raise ValueError."""
        with pytest.raises(ValueError):
            Phone.parse(raw)


class TestCountActive:
    """Tests for count_active."""

    def test_empty_set(self):
        """No enrollments means no occupied seats."""
        assert count_active([]) == 0

    def test_counts_only_active_statuses(self):
        """Cancelled and unrecognized enrollments are excluded."""
        enrollments = [
            make_enrollment(status, number=i)
            for i, status in enumerate(
                [
                    EnrollmentStatus.PENDING,
                    EnrollmentStatus.PAID,
                    EnrollmentStatus.CONFIRMED,
                    EnrollmentStatus.CANCELLED,
                    EnrollmentStatus.UNRECOGNIZED,
                ]
            )
        ]
        assert count_active(enrollments) == 3

    def test_restricts_to_course(self):
        """Enrollments of other courses are ignored when a course is given."""
        enrollments = [
            make_enrollment(EnrollmentStatus.PENDING, course_id="pastas", number=0),
            make_enrollment(EnrollmentStatus.PENDING, course_id="panes", number=1),
        ]
        assert count_active(enrollments, CourseId("pastas")) == 1
        assert count_active(enrollments) == 2


class TestCapacityView:
    """Tests for capacity_view and CapacityPatch."""

    def test_view_of_partially_booked_course(self):
        """Occupied seats are subtracted from capacity."""
        view = capacity_view(make_course(capacity=3), [make_enrollment(EnrollmentStatus.PAID)])
        assert (view.occupied, view.available, view.is_full) == (1, 2, False)
        assert view.enrollment_ids == ("e0",)

    def test_available_is_clamped_at_zero(self):
        """An overbooked course reports zero available seats and full."""
        view = CapacityView(course_id=CourseId("pastas"), capacity=2, occupied=3)
        assert view.available == 0
        assert view.is_full

    def test_zero_capacity_course_is_full(self):
        """A course without seats is full with no enrollments."""
        view = capacity_view(make_course(capacity=0), [])
        assert view.is_full

    def test_patch_carries_course_id(self):
        """The render patch carries the course id as a string."""
        view = capacity_view(make_course(capacity=2), [make_enrollment(EnrollmentStatus.PENDING)])
        assert view.as_patch().as_dict() == {
            "course_id": "pastas",
            "occupied": 1,
            "available": 1,
            "is_full": False,
        }


class TestSchedule:
    """Tests for schedule_state and matches_schedule."""

    def test_past_course_is_finished(self):
        """A course dated before today is finished regardless of seats."""
        course = make_course()
        view = capacity_view(course, [])
        assert schedule_state(course, view, date(2025, 4, 2)) is ScheduleState.FINISHED

    def test_course_today(self):
        """A course dated today is 'today', or 'today_full' without seats."""
        course = make_course(capacity=1)
        today = date(2025, 4, 1)
        assert schedule_state(course, capacity_view(course, []), today) is ScheduleState.TODAY
        full = capacity_view(course, [make_enrollment(EnrollmentStatus.PENDING)])
        assert schedule_state(course, full, today) is ScheduleState.TODAY_FULL

    def test_future_course(self):
        """A future course is available until its seats run out."""
        course = make_course(capacity=1)
        today = date(2025, 3, 1)
        assert schedule_state(course, capacity_view(course, []), today) is ScheduleState.AVAILABLE
        full = capacity_view(course, [make_enrollment(EnrollmentStatus.CONFIRMED)])
        assert schedule_state(course, full, today) is ScheduleState.FULL

    def test_matches_schedule(self):
        """Catalog filters split courses by date."""
        course = make_course()
        assert matches_schedule(course, ScheduleFilter.UPCOMING, date(2025, 3, 31))
        assert matches_schedule(course, ScheduleFilter.TODAY, date(2025, 4, 1))
        assert matches_schedule(course, ScheduleFilter.FINISHED, date(2025, 4, 2))
        assert not matches_schedule(course, ScheduleFilter.UPCOMING, date(2025, 4, 1))
