# member/management/commands/seed_guild.py
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from boss.models import Boss
from loot.models import LootItem, Participation, GuildFinancials
from member.models import Member, MemberRole
from member.role_timeline import add_period

User = get_user_model()

MEMBERS = [
    ("Guild Master Boks", MemberRole.GUILD_MASTER),
    ("Carl Core", MemberRole.CORE),
    ("Lemuel Leader", MemberRole.CORE),
    ("Timer Boss", MemberRole.MEMBER),
    ("Shadow Warrior", MemberRole.MEMBER),
    ("Ice Mage", MemberRole.MEMBER),
    ("Fire Knight", MemberRole.MEMBER),
    ("Wind Archer", MemberRole.MEMBER),
]

# name, type, respawn minutes, hours since last kill
BOSSES = [
    ("Dragon King", Boss.BossType.NORMAL, 120, 1),
    ("Ice Lord", Boss.BossType.NORMAL, 180, 2),
    ("Shadow Beast", Boss.BossType.FIXED, 360, 5),
    ("Fire Demon", Boss.BossType.NORMAL, 90, None),
    ("Wind Elemental", Boss.BossType.FIXED, 240, 3),
    ("Earth Golem", Boss.BossType.NORMAL, 150, 1),
]

# name, value, boss index, status, participant indexes
LOOT = [
    ("Dragon Scale Armor", 15000, 0, LootItem.Status.SOLD, [0, 1, 4]),
    ("Ice Shard Sword", 12000, 1, LootItem.Status.SOLD, [0, 2, 5]),
    ("Shadow Cloak", 8000, 2, LootItem.Status.PENDING, [1, 3, 6]),
    ("Fire Ruby", 20000, 3, LootItem.Status.SOLD, [0, 1, 2, 7]),
    ("Wind Essence", 6000, 4, LootItem.Status.SETTLED, [0, 4]),
    ("Earth Crystal", 10000, 5, LootItem.Status.SOLD, [0, 3, 5, 6]),
]


class Command(BaseCommand):
    help = "Load sample bosses, members (with role history) and loot; optionally create a staff admin."

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Delete existing guild data first')
        parser.add_argument('--admin-username', default=None, help='Create/update a staff user with this name')
        parser.add_argument('--admin-password', default=None, help='Password for --admin-username')

    def handle(self, *args, **options):
        if options['admin_username'] and not options['admin_password']:
            self.stderr.write(self.style.ERROR("--admin-password is required with --admin-username"))
            return

        now = timezone.now()
        with transaction.atomic():
            if options['reset']:
                LootItem.objects.all().delete()
                Boss.objects.all().delete()
                Member.objects.all().delete()
                GuildFinancials.objects.all().delete()
                self.stdout.write("Existing guild data removed")

            members = []
            for name, role in MEMBERS:
                member, created = Member.objects.get_or_create(name=name, defaults={"role": role})
                if created:
                    add_period(member.pk, role, now - timedelta(days=30), None, 'Initial member creation', now=now)
                members.append(member)

            bosses = []
            for name, boss_type, respawn, hours_ago in BOSSES:
                last_killed = now - timedelta(hours=hours_ago) if hours_ago is not None else None
                boss, _ = Boss.objects.get_or_create(
                    name=name,
                    defaults={"type": boss_type, "respawn_time": respawn, "last_killed": last_killed},
                )
                bosses.append(boss)

            loot_created = 0
            for days_ago, (name, value, boss_index, status, participant_indexes) in enumerate(LOOT, start=1):
                if LootItem.objects.filter(name=name, boss=bosses[boss_index]).exists():
                    continue
                item = LootItem.objects.create(
                    name=name,
                    value=value,
                    boss=bosses[boss_index],
                    status=status,
                    date_acquired=now - timedelta(days=days_ago),
                )
                Participation.objects.bulk_create(
                    Participation(loot_item=item, member=members[i]) for i in participant_indexes
                )
                loot_created += 1

            GuildFinancials.objects.get_or_create(key=GuildFinancials.MAIN)

        self.stdout.write(self.style.SUCCESS(
            f"{len(members)} members, {len(bosses)} bosses, {loot_created} new loot item(s)"
        ))

        if options['admin_username']:
            user, created = User.objects.get_or_create(username=options['admin_username'])
            user.is_staff = True
            user.set_password(options['admin_password'])
            user.save()
            verb = "created" if created else "updated"
            self.stdout.write(self.style.SUCCESS(f"Admin {user.username} {verb}"))
