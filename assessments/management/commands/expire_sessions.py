from django.core.management.base import BaseCommand
from django.utils import timezone

from assessments.services import expire_overdue_sessions


class Command(BaseCommand):
    """
    Marks in-progress exam sessions past their end time as expired.
    Nothing is submitted; students can still submit an expired session.

    Usage:
        python manage.py expire_sessions
        python manage.py expire_sessions --dry-run
    """

    help = 'Expires exam sessions that ran past their end time'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only list the overdue sessions, change nothing',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        now = timezone.now()

        session_ids = expire_overdue_sessions(now=now, dry_run=dry_run)

        if not session_ids:
            self.stdout.write(self.style.SUCCESS("No overdue exam sessions"))
            return

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f"DRY RUN: would expire {len(session_ids)} overdue exam sessions")
            )
            for pk in session_ids:
                self.stdout.write(f"   - session {pk}")
        else:
            self.stdout.write(self.style.SUCCESS(f"Expired {len(session_ids)} overdue exam sessions"))
