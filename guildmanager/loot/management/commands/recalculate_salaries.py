# loot/management/commands/recalculate_salaries.py
from django.core.management.base import BaseCommand

from loot.integrity import is_valid
from loot.services import recalculate_global_salaries


class Command(BaseCommand):
    help = "Rebuild the salaries of every SOLD loot item and refresh the guild financials (cron friendly)."

    def handle(self, *args, **options):
        result = recalculate_global_salaries()
        self.stdout.write(
            f"{result['items_processed']} item(s), {result['salaries_created']} salary row(s): "
            f"loot={result['total_loot_value']:g} distributed={result['total_distributed']:g} "
            f"fund={result['guild_fund']:g}"
        )
        if is_valid(result['total_loot_value'], result['total_distributed'],
                    result['guild_fund'], result['admin_fee']):
            self.stdout.write(self.style.SUCCESS("Salaries recalculated; totals reconcile."))
        else:
            self.stdout.write(self.style.WARNING(
                "Salaries recalculated, but some SOLD loot had no eligible members and is unallocated."
            ))
