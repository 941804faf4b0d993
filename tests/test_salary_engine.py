import logging

import pytest
from django.db import DatabaseError

from loot.integrity import is_valid
from loot.models import GuildFinancials, LootItem, Salary
from loot.services import recalculate_global_salaries, split_value
from member import role_timeline
from member.models import MemberRole
from member.role_timeline import TimelineSnapshot

from conftest import at

pytestmark = pytest.mark.django_db


@pytest.fixture
def guild(make_member):
    """A Guild Master and three regular members, all active since January 2025."""
    since = at(2025, 1, 1)
    return {
        "gm": make_member("Boks", MemberRole.GUILD_MASTER, since=since),
        "carl": make_member("Carl", MemberRole.CORE, since=since),
        "lem": make_member("Lemuel", MemberRole.MEMBER, since=since),
        "ice": make_member("Ice Mage", MemberRole.MEMBER, since=since),
    }


def amounts(item):
    return {s.member_id: s.amount for s in Salary.objects.filter(loot_item=item)}


def test_split_value_floors_and_keeps_remainder():
    assert split_value(10000, 4) == (2500, 0)
    assert split_value(10001, 3) == (3333, 2)
    per_member, remainder = split_value(15000.0, 7)
    assert per_member * 7 + remainder == 15000


def test_guild_master_joins_three_participants(guild, make_loot):
    item = make_loot("Fire Ruby", 10000, at(2025, 6, 1),
                     participants=[guild["carl"], guild["lem"], guild["ice"]])

    result = recalculate_global_salaries()

    assert amounts(item) == {
        guild["carl"].pk: 2500,
        guild["lem"].pk: 2500,
        guild["ice"].pk: 2500,
        guild["gm"].pk: 2500,
    }
    assert result["guild_fund"] == 0
    assert result["total_distributed"] == 10000
    assert result["salaries_created"] == 4


def test_remainder_goes_to_guild_fund(guild, make_loot):
    item = make_loot("Ice Shard Sword", 10001, at(2025, 6, 1), participants=[guild["carl"], guild["lem"]])

    result = recalculate_global_salaries()

    # carl, lem and the Guild Master
    assert sorted(amounts(item).values()) == [3333, 3333, 3333]
    assert result["guild_fund"] == 2
    assert result["total_distributed"] == 9999
    assert result["admin_fee"] == 0


def test_participating_guild_master_is_not_paid_twice(guild, make_loot):
    item = make_loot("Wind Essence", 6000, at(2025, 6, 1), participants=[guild["gm"], guild["carl"]])

    recalculate_global_salaries()

    assert amounts(item) == {guild["gm"].pk: 3000, guild["carl"].pk: 3000}


def test_role_is_resolved_at_acquisition_date(make_member, make_loot):
    gm = make_member("Boks", MemberRole.GUILD_MASTER, since=at(2025, 1, 1))
    rookie = make_member("Rookie", MemberRole.MEMBER, since=at(2025, 1, 1))
    promotion = at(2025, 6, 10)
    role_timeline.add_period(rookie.pk, MemberRole.CORE, promotion, reason="Promoted")
    item = make_loot("Shadow Cloak", 8000, at(2025, 6, 9), participants=[rookie])

    snapshot = TimelineSnapshot.load()
    assert snapshot.role_at(rookie.pk, item.date_acquired) == MemberRole.MEMBER
    assert snapshot.role_at(rookie.pk, promotion) == MemberRole.CORE

    recalculate_global_salaries()
    assert amounts(item) == {rookie.pk: 4000, gm.pk: 4000}


def test_guild_master_of_the_acquisition_date_is_paid(make_member, make_loot):
    old_gm = make_member("Old Master", MemberRole.GUILD_MASTER, since=at(2025, 1, 1))
    role_timeline.add_period(old_gm.pk, MemberRole.MEMBER, at(2025, 6, 1), reason="Stepped down")
    new_gm = make_member("New Master", MemberRole.GUILD_MASTER, since=at(2025, 6, 1))
    raider = make_member("Raider", MemberRole.MEMBER, since=at(2025, 1, 1))

    before = make_loot("Earth Crystal", 1000, at(2025, 5, 15), participants=[raider])
    after = make_loot("Dragon Scale Armor", 1000, at(2025, 7, 15), participants=[raider])

    recalculate_global_salaries()

    assert amounts(before) == {raider.pk: 500, old_gm.pk: 500}
    assert amounts(after) == {raider.pk: 500, new_gm.pk: 500}


def test_participant_without_role_on_that_date_is_skipped(guild, make_member, make_loot):
    latecomer = make_member("Latecomer", MemberRole.MEMBER, since=at(2025, 9, 1))
    item = make_loot("Fire Ruby", 900, at(2025, 6, 1), participants=[guild["carl"], latecomer])

    recalculate_global_salaries()

    assert amounts(item) == {guild["carl"].pk: 450, guild["gm"].pk: 450}


def test_recalculation_is_idempotent(guild, make_loot):
    make_loot("Fire Ruby", 20000, at(2025, 6, 1), participants=[guild["carl"], guild["lem"], guild["ice"]])
    make_loot("Ice Shard Sword", 12001, at(2025, 6, 2), participants=[guild["lem"]])

    first = recalculate_global_salaries()
    first_rows = sorted(Salary.objects.values_list("member_id", "loot_item_id", "amount"))
    second = recalculate_global_salaries()
    second_rows = sorted(Salary.objects.values_list("member_id", "loot_item_id", "amount"))

    assert first == second
    assert first_rows == second_rows
    assert GuildFinancials.objects.count() == 1


def test_every_item_and_the_totals_reconcile(guild, make_loot):
    values = [15000, 12000, 20001, 10003, 7]
    items = [
        make_loot(f"Item {i}", value, at(2025, 6, i + 1), participants=[guild["carl"], guild["lem"]][: i % 2 + 1])
        for i, value in enumerate(values)
    ]

    result = recalculate_global_salaries()

    fund = 0
    for item in items:
        paid = sum(amounts(item).values())
        per_member = set(amounts(item).values())
        assert len(per_member) == 1
        remainder = item.value - paid
        assert 0 <= remainder < len(amounts(item))
        fund += remainder

    assert result["guild_fund"] == fund
    assert result["total_loot_value"] == sum(values)
    assert is_valid(result["total_loot_value"], result["total_distributed"],
                    result["guild_fund"], result["admin_fee"])

    financials = GuildFinancials.main()
    assert financials.total_loot_value == sum(values)
    assert financials.total_distributed == result["total_distributed"]
    assert financials.guild_fund == fund
    assert financials.admin_fee == 0


def test_pending_and_settled_items_are_left_alone(guild, make_loot):
    pending = make_loot("Shadow Cloak", 8000, at(2025, 6, 1), participants=[guild["carl"]],
                        status=LootItem.Status.PENDING)
    settled = make_loot("Wind Essence", 6000, at(2025, 6, 1), participants=[guild["carl"]],
                        status=LootItem.Status.SETTLED)
    Salary.objects.create(member=guild["carl"], loot_item=settled, amount=3000)

    result = recalculate_global_salaries()

    assert result["items_processed"] == 0
    assert result["total_loot_value"] == 0
    assert not Salary.objects.filter(loot_item=pending).exists()
    assert amounts(settled) == {guild["carl"].pk: 3000}


def test_stale_salaries_are_replaced(guild, make_loot):
    item = make_loot("Fire Ruby", 1000, at(2025, 6, 1), participants=[guild["carl"], guild["lem"], guild["ice"]])
    recalculate_global_salaries()
    assert len(amounts(item)) == 4

    item.participations.filter(member=guild["ice"]).delete()
    recalculate_global_salaries()

    assert amounts(item) == {guild["carl"].pk: 333, guild["lem"].pk: 333, guild["gm"].pk: 333}


def test_item_without_beneficiaries_inflates_total_only(make_member, make_loot, caplog, monkeypatch):
    """Known gap: nobody eligible means the value is counted but never allocated."""
    monkeypatch.setattr(logging.getLogger("loot"), "propagate", True)
    ghost = make_member("Ghost", MemberRole.MEMBER, since=at(2026, 1, 1))
    item = make_loot("Earth Crystal", 5000, at(2025, 6, 1), participants=[ghost])

    with caplog.at_level(logging.WARNING, logger="loot.services"):
        result = recalculate_global_salaries()

    assert amounts(item) == {}
    assert result["total_loot_value"] == 5000
    assert result["total_distributed"] == 0
    assert result["guild_fund"] == 0
    assert not is_valid(result["total_loot_value"], result["total_distributed"],
                        result["guild_fund"], result["admin_fee"])
    assert "no eligible members" in caplog.text


def test_failed_recalculation_leaves_previous_ledger_intact(guild, make_loot, monkeypatch):
    first = make_loot("Fire Ruby", 1000, at(2025, 6, 1), participants=[guild["gm"]])
    recalculate_global_salaries()
    before = sorted(Salary.objects.values_list("member_id", "amount"))

    make_loot("Ice Shard Sword", 3000, at(2025, 6, 2), participants=[guild["carl"]])

    def disk_full(*args, **kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(Salary.objects, "bulk_create", disk_full)
    with pytest.raises(DatabaseError):
        recalculate_global_salaries()

    assert sorted(Salary.objects.values_list("member_id", "amount")) == before
    assert amounts(first) == {guild["gm"].pk: 1000}
    financials = GuildFinancials.main()
    assert financials.total_loot_value == 1000
    assert financials.total_distributed == 1000
