from enrollments.handlers.views import (
    AdminCourseDetailView,
    AdminCourseListView,
    AdminEnrollmentDetailView,
    CourseDetailView,
    CourseEnrollmentView,
    CourseListView,
    CourseResyncView,
    EnrollmentCancelView,
    EnrollmentConfirmView,
    MyEnrollmentsView,
    PaymentProofView,
    ResyncAllView,
)

__all__ = [
    "AdminCourseDetailView",
    "AdminCourseListView",
    "AdminEnrollmentDetailView",
    "CourseDetailView",
    "CourseEnrollmentView",
    "CourseListView",
    "CourseResyncView",
    "EnrollmentCancelView",
    "EnrollmentConfirmView",
    "MyEnrollmentsView",
    "PaymentProofView",
    "ResyncAllView",
]
