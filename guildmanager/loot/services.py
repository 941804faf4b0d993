# loot/services.py
import logging
import math
from datetime import datetime

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Prefetch

from boss.models import Boss
from member.attendance import guild_timezone
from member.models import Member, MemberRole
from member.role_timeline import TimelineSnapshot, add_period
from .models import LootItem, Participation, Salary, GuildFinancials
from .serializers import LootImportRowSerializer

logger = logging.getLogger(__name__)

ELIGIBLE_ROLES = (MemberRole.GUILD_MASTER, MemberRole.CORE, MemberRole.MEMBER)
DEFAULT_RESPAWN_MINUTES = 60


def is_eligible(role):
    # Every known role earns a share when it participated; the Guild Master also without
    return role in ELIGIBLE_ROLES


def split_value(value, count):
    """
    Floor-divide an item's value among `count` members.
    Returns (per_member, remainder); per_member * count + remainder == value.
    """
    per_member = math.floor(value / count)
    return per_member, value - per_member * count


def eligible_member_ids(item, timeline):
    """
    Beneficiaries of one SOLD item, in participation order, with roles taken
    at the item's acquisition date. Whoever was Guild Master on that date is
    appended even without participating.
    """
    eligible = []
    for participation in item.participations.all():
        role = timeline.role_at(participation.member_id, item.date_acquired)
        if role is None:
            continue
        if is_eligible(role) and participation.member_id not in eligible:
            eligible.append(participation.member_id)

    guild_master_id = timeline.guild_master_at(item.date_acquired)
    if guild_master_id is not None and guild_master_id not in eligible:
        eligible.append(guild_master_id)
    return eligible


def _lock_financials():
    # Row lock on the singleton; a second recalculation waits here until the first commits
    financials, _ = GuildFinancials.objects.select_for_update().get_or_create(key=GuildFinancials.MAIN)
    return financials


@transaction.atomic
def recalculate_global_salaries():
    """
    Rebuild the salary ledger of every SOLD loot item from scratch.

    Steps (all inside one transaction):
      1) lock the GuildFinancials row
      2) delete every Salary of a SOLD item (PENDING / SETTLED salaries stay)
      3) per item: resolve participants' roles at date_acquired, add the
         Guild Master of that date, split value with floor division, the
         remainder going to the guild fund
      4) bulk insert the salaries and overwrite the financials snapshot

    A SOLD item with nobody eligible still counts towards total_loot_value
    but adds nothing to total_distributed or guild_fund.
    """
    financials = _lock_financials()

    sold_items = list(
        LootItem.objects
        .filter(status=LootItem.Status.SOLD)
        .prefetch_related(Prefetch('participations', queryset=Participation.objects.order_by('id')))
        .order_by('id')
    )

    deleted, _ = Salary.objects.filter(loot_item__status=LootItem.Status.SOLD).delete()

    timeline = TimelineSnapshot.load()

    salaries = []
    total_loot_value = 0
    total_distributed = 0
    guild_fund = 0
    admin_fee = 0

    for item in sold_items:
        total_loot_value += item.value

        eligible = eligible_member_ids(item, timeline)
        if not eligible:
            logger.warning("Loot item %s (%s, value %s) has no eligible members; value left unallocated",
                           item.pk, item.name, item.value)
            continue

        per_member, remainder = split_value(item.value, len(eligible))
        salaries.extend(
            Salary(member_id=member_id, loot_item=item, amount=per_member)
            for member_id in eligible
        )
        total_distributed += per_member * len(eligible)
        guild_fund += remainder

    Salary.objects.bulk_create(salaries)

    financials.total_loot_value = total_loot_value
    financials.total_distributed = total_distributed
    financials.guild_fund = guild_fund
    financials.admin_fee = admin_fee
    financials.save()

    logger.info("Salaries recalculated: %d sold item(s), %d salary row(s) replacing %d, "
                "loot=%s distributed=%s fund=%s",
                len(sold_items), len(salaries), deleted, total_loot_value, total_distributed, guild_fund)

    return {
        "total_loot_value": total_loot_value,
        "total_distributed": total_distributed,
        "guild_fund": guild_fund,
        "admin_fee": admin_fee,
        "items_processed": len(sold_items),
        "salaries_created": len(salaries),
    }


def _get_or_create_boss(name):
    boss, created = Boss.objects.get_or_create(
        name=name,
        defaults={"type": Boss.BossType.NORMAL, "respawn_time": DEFAULT_RESPAWN_MINUTES},
    )
    if created:
        logger.info("Import: created boss %r", name)
    return boss


def _get_or_create_member(name):
    member = Member.objects.filter(name=name).first()
    if member is not None:
        return member
    member = Member.objects.create(name=name, role=MemberRole.MEMBER)
    add_period(member.pk, MemberRole.MEMBER, member.created_at, None, 'Initial member creation')
    logger.info("Import: created member %r", name)
    return member


def _local_midnight(day):
    return guild_timezone().localize(datetime(day.year, day.month, day.day))


def import_loot_rows(rows):
    """
    Create PENDING loot items from already-parsed rows:
        {item_name, boss_name, item_value, date_acquired (MM/DD/YYYY), participants: [names]}

    Unknown bosses and members are created on the fly. Each row is its own
    savepoint; a bad row is reported in `errors` and the rest still go in.
    """
    created = []
    errors = []

    for index, row in enumerate(rows, start=1):
        serializer = LootImportRowSerializer(data=row)
        if not serializer.is_valid():
            errors.append({"row": index, "errors": serializer.errors})
            continue
        data = serializer.validated_data

        try:
            with transaction.atomic():
                boss = _get_or_create_boss(data['boss_name'].strip())
                item = LootItem.objects.create(
                    name=data['item_name'].strip(),
                    value=data['item_value'],
                    date_acquired=_local_midnight(data['date_acquired']),
                    boss=boss,
                    status=LootItem.Status.PENDING,
                )
                seen = set()
                for name in data['participants']:
                    name = name.strip()
                    if not name or name in seen:
                        continue
                    seen.add(name)
                    Participation.objects.create(loot_item=item, member=_get_or_create_member(name))
        except (IntegrityError, ValidationError) as exc:
            logger.warning("Import: row %d rejected: %s", index, exc)
            errors.append({"row": index, "errors": [str(exc)]})
            continue
        created.append(item)

    logger.info("Import: %d loot item(s) created, %d row(s) rejected", len(created), len(errors))
    return created, errors
