# member/management/commands/init_role_history.py
from django.core.management.base import BaseCommand

from member.role_timeline import initialize_role_history


class Command(BaseCommand):
    help = "Give every member without role history an open period from their creation date."

    def handle(self, *args, **options):
        created = initialize_role_history()
        if created:
            self.stdout.write(self.style.SUCCESS(f"Initialized role history for {created} member(s)"))
        else:
            self.stdout.write("Every member already has role history")
