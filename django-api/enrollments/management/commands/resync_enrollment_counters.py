"""Recompute the ``inscriptos`` counter of one course or of all courses."""

from django.core.management.base import BaseCommand, CommandError

from enrollments import wiring
from enrollments.domain.errors import DomainError


class Command(BaseCommand):
    help = "Resynchronize course enrollment counters with their active enrollments."

    def add_arguments(self, parser):
        parser.add_argument("--course", help="Only resynchronize this course id.")

    def handle(self, *args, **options):
        service = wiring.counter_sync_service()
        try:
            if options["course"]:
                counts = {options["course"]: service.resync(options["course"])}
            else:
                counts = service.resync_all()
        except DomainError as exc:
            raise CommandError(exc.message) from exc

        for course_id, count in counts.items():
            self.stdout.write(f"{course_id}: {count}")
        self.stdout.write(self.style.SUCCESS(f"Resynchronized {len(counts)} course(s)"))
