# labflow/iam/management/commands/purge_sessions.py

from django.core.management.base import BaseCommand

from labflow.iam.services.sessions import get_session_store


class Command(BaseCommand):
    help = "Delete sessions idle longer than LABFLOW_SESSION_TTL_SECONDS (run from cron)."

    def handle(self, *args, **options):
        deleted = get_session_store().purge_expired()
        self.stdout.write(self.style.SUCCESS(f"Expired sessions purged: {deleted}"))
