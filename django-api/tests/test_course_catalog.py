"""Integration tests for the course catalog and enrollment API.

Run with: pytest tests/test_course_catalog.py -v
"""

from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from enrollments.domain.errors import StoreUnavailableError
from enrollments.stores.django_store import DjangoDocumentStore
from enrollments.stores.interfaces import COURSES, ENROLLMENTS, USERS
from factories import enrollment_doc, seed_course, seed_enrollments

FUTURE = "2099-05-01T18:00:00+00:00"
PAST = "2000-05-01T18:00:00+00:00"


@pytest.fixture
def db_store() -> DjangoDocumentStore:
    return DjangoDocumentStore()


@pytest.fixture
def member(django_user_model):
    return django_user_model.objects.create_user(
        username="ana", email="ana@example.com", password="secret", first_name="Ana"
    )


@pytest.fixture
def staff(django_user_model):
    return django_user_model.objects.create_user(
        username="admin", email="admin@example.com", password="secret", is_staff=True
    )


@pytest.fixture
def member_client(api_client: APIClient, member) -> APIClient:
    api_client.force_authenticate(member)
    return api_client


@pytest.fixture
def staff_client(api_client: APIClient, staff) -> APIClient:
    api_client.force_authenticate(staff)
    return api_client


@pytest.mark.django_db
class TestCourseList:
    """Tests for GET /api/courses"""

    def test_list_courses_empty_catalog(self, api_client: APIClient):
        """Given no courses, returns an empty list."""
        response = api_client.get("/api/courses")

        assert response.status_code == 200
        assert response.json() == {"results": []}

    def test_list_courses_with_availability(self, api_client: APIClient, db_store):
        """Courses carry seats computed from active enrollments."""
        seed_course(db_store, capacity=3, scheduled_at=FUTURE)
        seed_enrollments(db_store, "pastas", ["pending", "paid", "cancelled"])

        response = api_client.get("/api/courses")

        (course,) = response.json()["results"]
        assert course["id"] == "pastas"
        assert course["price"] == "1500.00"
        assert (course["occupied"], course["available"], course["is_full"]) == (2, 1, False)
        assert course["state"] == "available"

    def test_full_course_state(self, api_client: APIClient, db_store):
        """A future course without seats is reported full."""
        seed_course(db_store, capacity=1, scheduled_at=FUTURE)
        seed_enrollments(db_store, "pastas", ["confirmed"])

        (course,) = api_client.get("/api/courses").json()["results"]

        assert course["state"] == "full"
        assert course["available"] == 0

    def test_filter_by_schedule(self, api_client: APIClient, db_store):
        """The state parameter selects upcoming or finished courses."""
        seed_course(db_store, "futuro", scheduled_at=FUTURE)
        seed_course(db_store, "pasado", scheduled_at=PAST)

        upcoming = api_client.get("/api/courses", {"state": "upcoming"}).json()["results"]
        finished = api_client.get("/api/courses", {"state": "finished"}).json()["results"]

        assert [c["id"] for c in upcoming] == ["futuro"]
        assert [c["id"] for c in finished] == ["pasado"]
        assert finished[0]["state"] == "finished"

    def test_unknown_filter(self, api_client: APIClient):
        """An unknown state value returns 400."""
        response = api_client.get("/api/courses", {"state": "someday"})
        assert response.status_code == 400

    def test_store_unavailable(self, api_client: APIClient):
        """Store failures map to 503 without internal details."""
        with mock.patch.object(
            DjangoDocumentStore, "query", side_effect=StoreUnavailableError("query")
        ):
            response = api_client.get("/api/courses")

        assert response.status_code == 503
        assert response.json()["code"] == "STORE_UNAVAILABLE"


@pytest.mark.django_db
class TestCourseDetail:
    """Tests for GET /api/courses/{id}"""

    def test_get_course_returns_details(self, api_client: APIClient, db_store):
        """Given the course exists, returns it with fresh availability."""
        seed_course(db_store, capacity=4, scheduled_at=FUTURE)
        seed_enrollments(db_store, "pastas", ["pending"])

        response = api_client.get("/api/courses/pastas")

        assert response.status_code == 200
        assert response.json()["available"] == 3

    def test_get_course_not_found(self, api_client: APIClient):
        """Given the course does not exist, returns 404."""
        response = api_client.get("/api/courses/missing")

        assert response.status_code == 404
        assert response.json() == {"code": "COURSE_NOT_FOUND", "message": "Curso no encontrado"}


@pytest.mark.django_db
class TestEnrollment:
    """Tests for POST /api/courses/{id}/enrollments"""

    def test_enroll(self, member_client: APIClient, member, db_store):
        """A signed-in user with a phone gets a pending enrollment."""
        seed_course(db_store, scheduled_at=FUTURE)

        response = member_client.post(
            "/api/courses/pastas/enrollments", {"phone": "11 5555-1234"}, format="json"
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["status_label"] == "Pendiente de pago"
        assert body["phone"] == "1155551234"
        assert db_store.get(USERS, str(member.pk)).data["phone"] == "1155551234"

    def test_enroll_anonymous(self, api_client: APIClient, db_store):
        """Anonymous callers get 401."""
        seed_course(db_store, scheduled_at=FUTURE)

        response = api_client.post("/api/courses/pastas/enrollments", {}, format="json")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_REQUIRED"

    def test_enroll_without_phone(self, member_client: APIClient, db_store):
        """Without a phone on file or in the request the admission is cancelled."""
        seed_course(db_store, scheduled_at=FUTURE)

        response = member_client.post("/api/courses/pastas/enrollments", {}, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "ENROLLMENT_CANCELLED"
        assert db_store.query(ENROLLMENTS) == []

    def test_enroll_full_course(self, member_client: APIClient, db_store):
        """A full course returns 409 COURSE_FULL."""
        seed_course(db_store, capacity=1, scheduled_at=FUTURE)
        seed_enrollments(db_store, "pastas", ["paid"])

        response = member_client.post(
            "/api/courses/pastas/enrollments", {"phone": "1155551234"}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "COURSE_FULL"

    def test_enroll_twice(self, member_client: APIClient, db_store):
        """A second admission for the same course returns 409 ALREADY_ENROLLED."""
        seed_course(db_store, scheduled_at=FUTURE)
        url = "/api/courses/pastas/enrollments"
        member_client.post(url, {"phone": "1155551234"}, format="json")

        response = member_client.post(url, {}, format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_ENROLLED"

    def test_my_enrollments(self, member_client: APIClient, member, db_store):
        """The caller sees only their own enrollments."""
        db_store.create(ENROLLMENTS, enrollment_doc("pastas", str(member.pk)))
        db_store.create(ENROLLMENTS, enrollment_doc("pastas", "someone-else"))

        response = member_client.get("/api/me/enrollments")

        assert response.status_code == 200
        assert len(response.json()["results"]) == 1


@pytest.mark.django_db
class TestPaymentProof:
    """Tests for POST /api/enrollments/{id}/proof"""

    def test_upload_proof(self, member_client: APIClient, member, db_store):
        """Uploading a proof marks the enrollment paid."""
        enrollment_id = db_store.create(ENROLLMENTS, enrollment_doc("pastas", str(member.pk)))

        response = member_client.post(
            f"/api/enrollments/{enrollment_id}/proof",
            {
                "file": SimpleUploadedFile("comprobante.png", b"\x89PNG", "image/png"),
                "payment_method": "transferencia",
            },
            format="multipart",
        )

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert response.json()["has_proof"] is True
        stored = db_store.get(ENROLLMENTS, enrollment_id).data
        assert stored["proofReference"].startswith("data:image/png;base64,")

    def test_upload_too_large(self, member_client: APIClient, member, db_store, settings):
        """Files above the configured limit return 413."""
        settings.ENROLLMENTS = {"PROOF_MAX_BYTES": 8}
        enrollment_id = db_store.create(ENROLLMENTS, enrollment_doc("pastas", str(member.pk)))

        response = member_client.post(
            f"/api/enrollments/{enrollment_id}/proof",
            {
                "file": SimpleUploadedFile("comprobante.png", b"x" * 9, "image/png"),
                "payment_method": "transferencia",
            },
            format="multipart",
        )

        assert response.status_code == 413
        assert response.json()["code"] == "PROOF_TOO_LARGE"


@pytest.mark.django_db
class TestAdmin:
    """Tests for the /api/admin endpoints."""

    def test_requires_staff(self, member_client: APIClient):
        """Regular users are forbidden."""
        response = member_client.post("/api/admin/courses/resync")
        assert response.status_code == 403

    def test_create_update_delete_course(self, staff_client: APIClient, db_store):
        """Administrators manage courses."""
        created = staff_client.post(
            "/api/admin/courses",
            {
                "name": "Panes",
                "scheduled_at": FUTURE,
                "price": "3000",
                "capacity": 8,
            },
            format="json",
        )
        assert created.status_code == 201
        course_id = created.json()["id"]
        assert db_store.get(COURSES, course_id).data["inscriptos"] == 0

        updated = staff_client.patch(
            f"/api/admin/courses/{course_id}", {"capacity": 10}, format="json"
        )
        assert updated.status_code == 200
        assert updated.json()["capacity"] == 10

        deleted = staff_client.delete(f"/api/admin/courses/{course_id}")
        assert deleted.status_code == 204
        assert db_store.get(COURSES, course_id) is None

    def test_create_course_validation(self, staff_client: APIClient):
        """Malformed course input returns 400."""
        response = staff_client.post(
            "/api/admin/courses", {"name": "Panes", "capacity": 0}, format="json"
        )
        assert response.status_code == 400

    def test_resync_course(self, staff_client: APIClient, db_store):
        """Resync stores the active count, not the total."""
        seed_course(db_store, inscriptos=12)
        seed_enrollments(db_store, "pastas", ["pending", "pending", "pending", "cancelled"])

        response = staff_client.post("/api/admin/courses/pastas/resync")

        assert response.json() == {"course_id": "pastas", "inscriptos": 3}
        assert db_store.get(COURSES, "pastas").data["inscriptos"] == 3

    def test_resync_all(self, staff_client: APIClient, db_store):
        """Every course is resynchronized."""
        seed_course(db_store, "pastas")
        seed_course(db_store, "panes")
        seed_enrollments(db_store, "panes", ["paid"])

        response = staff_client.post("/api/admin/courses/resync")

        assert response.json() == {"results": {"pastas": 0, "panes": 1}}

    def test_confirm_and_cancel(self, staff_client: APIClient, db_store):
        """Confirming then cancelling follows the allowed transitions."""
        enrollment_id = db_store.create(ENROLLMENTS, enrollment_doc("pastas", "ana"))

        confirmed = staff_client.post(f"/api/admin/enrollments/{enrollment_id}/confirm")
        cancelled = staff_client.post(f"/api/admin/enrollments/{enrollment_id}/cancel")
        again = staff_client.post(f"/api/admin/enrollments/{enrollment_id}/confirm")

        assert confirmed.json()["status"] == "confirmed"
        assert cancelled.json()["status"] == "cancelled"
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_delete_enrollment(self, staff_client: APIClient, db_store):
        """Deleting an enrollment removes it; a second delete is 404."""
        enrollment_id = db_store.create(ENROLLMENTS, enrollment_doc("pastas", "ana"))

        assert staff_client.delete(f"/api/admin/enrollments/{enrollment_id}").status_code == 204
        assert staff_client.delete(f"/api/admin/enrollments/{enrollment_id}").status_code == 404
