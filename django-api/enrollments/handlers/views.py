"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Let domain errors propagate to handlers.errors for the HTTP mapping
- Never contain business logic
"""

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from enrollments import wiring
from enrollments.capacity_cache import cached_capacity
from enrollments.domain import CapacityPatch, Course, ScheduleFilter
from enrollments.handlers.serializers import (
    CourseInputSerializer,
    CourseSerializer,
    EnrollmentRequestSerializer,
    EnrollmentSerializer,
    PaymentProofSerializer,
)
from enrollments.services.catalog_service import CatalogService

identity = wiring.DjangoIdentityProvider()


def _live_availability(catalog: CatalogService, course: Course) -> CapacityPatch:
    cached = cached_capacity(course.id.value)
    if cached is not None:
        return CapacityPatch(**cached)
    return catalog.capacity_for(course).as_patch()


class CourseListView(APIView):
    """Handler for GET /api/courses"""

    permission_classes = [AllowAny]

    def get(self, request: Request) -> Response:
        raw_state = request.query_params.get("state")
        try:
            schedule = ScheduleFilter(raw_state) if raw_state else None
        except ValueError:
            raise ValidationError({"state": f"Unknown schedule filter '{raw_state}'"}) from None

        catalog = wiring.catalog_service()
        courses = catalog.list_courses(schedule)
        wiring.catalog_controller().show(courses)
        availability = {
            course.id.value: _live_availability(catalog, course) for course in courses
        }
        serializer = CourseSerializer(
            courses,
            many=True,
            context={"availability": availability, "today": catalog.today()},
        )
        return Response({"results": serializer.data})


class CourseDetailView(APIView):
    """Handler for GET /api/courses/{course_id}"""

    permission_classes = [AllowAny]

    def get(self, request: Request, course_id: str) -> Response:
        catalog = wiring.catalog_service()
        course = catalog.get_course(course_id)
        context = {
            "availability": {course.id.value: catalog.capacity_for(course)},
            "today": catalog.today(),
        }
        return Response(CourseSerializer(course, context=context).data)


class CourseEnrollmentView(APIView):
    """Handler for POST /api/courses/{course_id}/enrollments"""

    # anonymous callers are rejected by the admission flow itself
    permission_classes = [AllowAny]

    def post(self, request: Request, course_id: str) -> Response:
        body = EnrollmentRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        service = wiring.admission_service(phone=body.validated_data.get("phone"))
        enrollment = service.enroll(course_id, identity.current_user(request))
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


class MyEnrollmentsView(APIView):
    """Handler for GET /api/me/enrollments"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        enrollments = wiring.catalog_service().enrollments_for_user(identity.current_user(request))
        return Response({"results": EnrollmentSerializer(enrollments, many=True).data})


class PaymentProofView(APIView):
    """Handler for POST /api/enrollments/{enrollment_id}/proof"""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request: Request, enrollment_id: str) -> Response:
        body = PaymentProofSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        upload = body.validated_data["file"]
        enrollment = wiring.enrollment_admin_service().submit_payment_proof(
            enrollment_id,
            identity.current_user(request),
            upload.read(),
            upload.content_type,
            body.validated_data["payment_method"],
            body.validated_data.get("comments"),
        )
        return Response(EnrollmentSerializer(enrollment).data)


class AdminCourseListView(APIView):
    """Handler for POST /api/admin/courses"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request) -> Response:
        body = CourseInputSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        course = wiring.course_admin_service().create(
            body.validated_data, identity.current_user(request)
        )
        return Response(_course_payload(course), status=status.HTTP_201_CREATED)


class AdminCourseDetailView(APIView):
    """Handler for PATCH|DELETE /api/admin/courses/{course_id}"""

    permission_classes = [IsAdminUser]

    def patch(self, request: Request, course_id: str) -> Response:
        body = CourseInputSerializer(data=request.data, partial=True)
        body.is_valid(raise_exception=True)
        course = wiring.course_admin_service().update(
            course_id, body.validated_data, identity.current_user(request)
        )
        return Response(_course_payload(course))

    def delete(self, request: Request, course_id: str) -> Response:
        wiring.course_admin_service().delete(course_id, identity.current_user(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CourseResyncView(APIView):
    """Handler for POST /api/admin/courses/{course_id}/resync"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, course_id: str) -> Response:
        count = wiring.counter_sync_service().resync(course_id)
        return Response({"course_id": course_id, "inscriptos": count})


class ResyncAllView(APIView):
    """Handler for POST /api/admin/courses/resync"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request) -> Response:
        return Response({"results": wiring.counter_sync_service().resync_all()})


class EnrollmentConfirmView(APIView):
    """Handler for POST /api/admin/enrollments/{enrollment_id}/confirm"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, enrollment_id: str) -> Response:
        enrollment = wiring.enrollment_admin_service().confirm(
            enrollment_id, identity.current_user(request)
        )
        return Response(EnrollmentSerializer(enrollment).data)


class EnrollmentCancelView(APIView):
    """Handler for POST /api/admin/enrollments/{enrollment_id}/cancel"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, enrollment_id: str) -> Response:
        enrollment = wiring.enrollment_admin_service().cancel(
            enrollment_id, identity.current_user(request)
        )
        return Response(EnrollmentSerializer(enrollment).data)


class AdminEnrollmentDetailView(APIView):
    """Handler for DELETE /api/admin/enrollments/{enrollment_id}"""

    permission_classes = [IsAdminUser]

    def delete(self, request: Request, enrollment_id: str) -> Response:
        wiring.enrollment_admin_service().delete(enrollment_id, identity.current_user(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


def _course_payload(course: Course) -> dict:
    catalog = wiring.catalog_service()
    context = {
        "availability": {course.id.value: catalog.capacity_for(course)},
        "today": catalog.today(),
    }
    return CourseSerializer(course, context=context).data
