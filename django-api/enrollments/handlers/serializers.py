"""Serializers for transforming domain models to API responses.

Output serializers read domain dataclasses; input serializers validate
request format only and leave business rules to the services.
"""

from rest_framework import serializers

from enrollments.domain import CourseStatus, schedule_state


class CourseSerializer(serializers.Serializer):
    """Serializer for Course domain model.

    Expects ``availability`` (course id -> CapacityView or CapacityPatch)
    and ``today`` in the serializer context.
    """

    id = serializers.CharField(source="id.value")
    name = serializers.CharField()
    description = serializers.CharField()
    scheduled_at = serializers.DateTimeField()
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    capacity = serializers.IntegerField(source="capacity.value")
    status = serializers.CharField(source="status.value")
    occupied = serializers.SerializerMethodField()
    available = serializers.SerializerMethodField()
    is_full = serializers.SerializerMethodField()
    state = serializers.SerializerMethodField()

    def _availability(self, course):
        return self.context["availability"][course.id.value]

    def get_occupied(self, course) -> int:
        return self._availability(course).occupied

    def get_available(self, course) -> int:
        return self._availability(course).available

    def get_is_full(self, course) -> bool:
        return self._availability(course).is_full

    def get_state(self, course) -> str:
        return schedule_state(course, self._availability(course), self.context["today"]).value


class EnrollmentSerializer(serializers.Serializer):
    """Serializer for Enrollment domain model."""

    id = serializers.CharField(source="id.value")
    course_id = serializers.CharField(source="course_id.value")
    course_name = serializers.CharField()
    user_name = serializers.CharField()
    user_email = serializers.CharField()
    phone = serializers.CharField(allow_null=True)
    amount = serializers.DecimalField(source="amount.amount", max_digits=10, decimal_places=2)
    enrolled_at = serializers.DateTimeField(allow_null=True)
    status = serializers.CharField(source="status.value")
    status_label = serializers.CharField(source="status.label")
    payment_method = serializers.CharField(allow_null=True)
    has_proof = serializers.SerializerMethodField()

    def get_has_proof(self, enrollment) -> bool:
        return enrollment.proof_reference is not None


class EnrollmentRequestSerializer(serializers.Serializer):
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)


class PaymentProofSerializer(serializers.Serializer):
    file = serializers.FileField()
    payment_method = serializers.CharField(max_length=50)
    comments = serializers.CharField(required=False, allow_blank=True, max_length=500)


class CourseInputSerializer(serializers.Serializer):
    """Request body for course creation and partial updates."""

    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    scheduled_at = serializers.DateTimeField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    capacity = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(
        choices=[status.value for status in CourseStatus], required=False
    )
