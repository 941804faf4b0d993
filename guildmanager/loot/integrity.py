# loot/integrity.py
from django.db.models import Sum, Count

from .models import LootItem, GuildFinancials

TOLERANCE = 0.01


def is_valid(total, distributed, fund, fee):
    return abs(total - (distributed + fund + fee)) < TOLERANCE


def _report(total, distributed, fund, fee):
    return {
        "total_loot_value": total,
        "total_distributed": distributed,
        "guild_fund": fund,
        "admin_fee": fee,
        "difference": total - (distributed + fund + fee),
        "is_valid": is_valid(total, distributed, fund, fee),
    }


def cached_report():
    """Integrity of the snapshot written by the last recalculation."""
    financials = GuildFinancials.main()
    return _report(
        financials.total_loot_value,
        financials.total_distributed,
        financials.guild_fund,
        financials.admin_fee,
    )


def live_report():
    """
    Recompute the same totals from the current tables (SOLD items only).
    The guild fund is rebuilt as each item's value minus its salaries, for
    items that have salaries; a SOLD item nobody was paid for adds only to
    the total and so shows up as a difference.
    """
    items = (
        LootItem.objects
        .filter(status=LootItem.Status.SOLD)
        .annotate(paid=Sum('salaries__amount'), salary_count=Count('salaries'))
    )

    total = 0
    distributed = 0
    fund = 0
    for item in items:
        total += item.value
        if item.salary_count:
            distributed += item.paid
            fund += item.value - item.paid

    return _report(total, distributed, fund, GuildFinancials.main().admin_fee)


def integrity_overview():
    live = live_report()
    cached = cached_report()
    in_sync = all(
        abs(live[k] - cached[k]) < TOLERANCE
        for k in ("total_loot_value", "total_distributed", "guild_fund", "admin_fee")
    )
    return {"live": live, "cached": cached, "in_sync": in_sync}


def unpaid_sold_items():
    """SOLD items without any salary row, e.g. nobody was eligible at recalculation time."""
    return (
        LootItem.objects
        .filter(status=LootItem.Status.SOLD)
        .annotate(salary_count=Count('salaries'))
        .filter(salary_count=0)
    )
