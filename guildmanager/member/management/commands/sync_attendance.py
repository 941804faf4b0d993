# member/management/commands/sync_attendance.py
from django.core.management.base import BaseCommand

from member.attendance import sync_attendance


class Command(BaseCommand):
    help = "Mark this week's loot participants as attended (run weekly or nightly)."

    def handle(self, *args, **options):
        result = sync_attendance()
        self.stdout.write(self.style.SUCCESS(
            f"Week {result['week_processed']}: {result['attendance_recorded']} attendance record(s) written"
        ))
