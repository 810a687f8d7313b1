from django.core.management.base import BaseCommand

from calls.services import expire_stale_calls


class Command(BaseCommand):
    help = "Mark unanswered calls older than video_call_ring_timeout_seconds as missed"

    def handle(self, *args, **options):
        count = expire_stale_calls()
        self.stdout.write(self.style.SUCCESS(f"Expired {count} call(s)"))
