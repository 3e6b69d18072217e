from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.models import AuditEvent


class Command(BaseCommand):
    help = "Delete audit events older than the retention window."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=180, help="Retention window in days (default: 180).")
        parser.add_argument("--dry-run", action="store_true", help="Only report how many rows would be deleted.")

    def handle(self, *args, **options):
        days = int(options["days"])
        if days < 1:
            raise CommandError("--days must be at least 1.")

        cutoff = timezone.now() - timedelta(days=days)
        queryset = AuditEvent.objects.filter(created_at__lt=cutoff)

        if options["dry_run"]:
            self.stdout.write(f"[dry-run] {queryset.count()} audit events older than {days} days would be deleted.")
            return

        deleted_count, _ = queryset.delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted_count} audit events older than {days} days."))
