from django.urls import path

from enrollments.handlers import (
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

urlpatterns = [
    path("courses", CourseListView.as_view(), name="course-list"),
    path("courses/<str:course_id>", CourseDetailView.as_view(), name="course-detail"),
    path(
        "courses/<str:course_id>/enrollments",
        CourseEnrollmentView.as_view(),
        name="course-enrollments",
    ),
    path("me/enrollments", MyEnrollmentsView.as_view(), name="my-enrollments"),
    path(
        "enrollments/<str:enrollment_id>/proof",
        PaymentProofView.as_view(),
        name="enrollment-proof",
    ),
    path("admin/courses", AdminCourseListView.as_view(), name="admin-course-list"),
    path("admin/courses/resync", ResyncAllView.as_view(), name="admin-course-resync-all"),
    path(
        "admin/courses/<str:course_id>",
        AdminCourseDetailView.as_view(),
        name="admin-course-detail",
    ),
    path(
        "admin/courses/<str:course_id>/resync",
        CourseResyncView.as_view(),
        name="admin-course-resync",
    ),
    path(
        "admin/enrollments/<str:enrollment_id>",
        AdminEnrollmentDetailView.as_view(),
        name="admin-enrollment-detail",
    ),
    path(
        "admin/enrollments/<str:enrollment_id>/confirm",
        EnrollmentConfirmView.as_view(),
        name="admin-enrollment-confirm",
    ),
    path(
        "admin/enrollments/<str:enrollment_id>/cancel",
        EnrollmentCancelView.as_view(),
        name="admin-enrollment-cancel",
    ),
]
