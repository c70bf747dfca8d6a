from django.apps import AppConfig


class EnrollmentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "enrollments"
    verbose_name = "Course enrollments"

    def ready(self) -> None:
        from enrollments import signals  # noqa: F401
