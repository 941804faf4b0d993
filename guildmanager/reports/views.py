from collections import defaultdict

from django.db.models import Count, Prefetch, Sum
from django.utils import timezone
from rest_framework.views import APIView

from accounts.permissions import IsGuildAdmin
from boss.models import Boss
from loot.integrity import integrity_overview, live_report, cached_report, unpaid_sold_items
from loot.models import GuildFinancials, LootItem, Salary
from member.attendance import attendance_rate
from member.models import Member
from member.views import ResponseMixin


# -----------------------------------------
# Helpers
# -----------------------------------------
def status_breakdown():
    rows = (
        LootItem.objects
        .values('status')
        .annotate(item_count=Count('id'), total_value=Sum('value'))
        .order_by('status')
    )
    return [
        {"status": r['status'], "item_count": r['item_count'], "total_value": r['total_value'] or 0}
        for r in rows
    ]


def member_breakdown():
    """Members who earned anything, highest earnings first."""
    rows = (
        Member.objects
        .annotate(total_earnings=Sum('salaries__amount'), item_count=Count('salaries'))
        .filter(item_count__gt=0)
        .order_by('-total_earnings', 'name')
    )
    return [
        {
            "member_id": m.pk,
            "member_name": m.name,
            "role": m.role,
            "total_earnings": m.total_earnings or 0,
            "item_count": m.item_count,
            "average_per_item": (m.total_earnings or 0) / m.item_count,
        }
        for m in rows
    ]


def boss_performance():
    paid = defaultdict(int)
    for row in Salary.objects.values('loot_item__boss').annotate(total=Sum('amount')):
        paid[row['loot_item__boss']] = row['total'] or 0

    rows = (
        Boss.objects
        .annotate(total_loot_value=Sum('loot_items__value'), item_count=Count('loot_items'))
        .filter(item_count__gt=0)
        .order_by('-total_loot_value', 'name')
    )
    return [
        {
            "boss_id": b.pk,
            "boss_name": b.name,
            "total_loot_value": b.total_loot_value or 0,
            "total_distributed": paid[b.pk],
            "item_count": b.item_count,
            "average_item_value": (b.total_loot_value or 0) / b.item_count,
        }
        for b in rows
    ]


def financials_snapshot():
    f = GuildFinancials.main()
    return {
        "total_loot_value": f.total_loot_value,
        "total_distributed": f.total_distributed,
        "guild_fund": f.guild_fund,
        "admin_fee": f.admin_fee,
        "updated_at": f.updated_at,
    }


# -----------------------------------------
# Views
# -----------------------------------------
class FinancialReportView(ResponseMixin, APIView):
    """GET /api/reports/financial/"""
    permission_classes = [IsGuildAdmin]

    def get(self, request):
        live = live_report()
        members = member_breakdown()
        bosses = boss_performance()
        return self.ok("Financial report generated.", {
            "generated_at": timezone.now(),
            "summary": {
                "total_loot_value": live["total_loot_value"],
                "total_distributed": live["total_distributed"],
                "guild_fund": live["guild_fund"],
                "admin_fee": live["admin_fee"],
                "total_members": len(members),
                "total_bosses": len(bosses),
                "total_items": LootItem.objects.count(),
            },
            "integrity": {
                "live": live,
                "cached": cached_report(),
                "unpaid_sold_items": list(unpaid_sold_items().values("id", "name", "value")),
            },
            "member_breakdown": members,
            "boss_performance": bosses,
            "status_breakdown": status_breakdown(),
        })


class MemberReportView(ResponseMixin, APIView):
    """GET /api/reports/members/ -> earnings, loot breakdown and attendance per member"""
    permission_classes = [IsGuildAdmin]

    def get(self, request):
        now = timezone.now()
        members = (
            Member.objects
            .prefetch_related(
                Prefetch('salaries', queryset=Salary.objects.select_related('loot_item__boss').order_by('id')),
                'attendances',
            )
            .order_by('name')
        )

        report = []
        for member in members:
            salaries = list(member.salaries.all())
            attendances = sorted(member.attendances.all(), key=lambda a: a.week, reverse=True)
            report.append({
                "member_id": member.pk,
                "member_name": member.name,
                "role": member.role,
                "total_earnings": sum(s.amount for s in salaries),
                "total_loot_items": len(salaries),
                "attendance_rate": attendance_rate(member, attendances, now),
                "join_date": member.created_at,
                "promotion_date": member.promotion_date,
                "demotion_date": member.demotion_date,
                "loot_breakdown": [
                    {
                        "item_name": s.loot_item.name,
                        "boss_name": s.loot_item.boss.name,
                        "item_value": s.loot_item.value,
                        "salary_amount": s.amount,
                        "date_acquired": s.loot_item.date_acquired,
                    }
                    for s in salaries
                ],
                "weekly_attendance": [{"week": a.week, "attended": a.attended} for a in attendances],
            })

        return self.ok("Member report generated.", {
            "generated_at": now,
            "total_members": len(report),
            "report": report,
        })


class MarketExchangeReportView(ResponseMixin, APIView):
    """GET /api/reports/market-exchange/ -> every loot item with who was paid what"""
    permission_classes = [IsGuildAdmin]

    def get(self, request):
        items = (
            LootItem.objects
            .select_related('boss')
            .prefetch_related('participants', 'salaries__member')
            .order_by('-date_acquired', '-id')
        )

        report = []
        summary = {
            "total_items": 0,
            "total_value": 0,
            "total_distributed": 0,
            "total_to_guild_fund": 0,
            "items_by_status": {s.lower(): 0 for s in LootItem.Status.values},
            "value_by_status": {s.lower(): 0 for s in LootItem.Status.values},
        }
        for item in items:
            participants = [m.name for m in item.participants.all()]
            salaries = list(item.salaries.all())
            paid = sum(s.amount for s in salaries)
            report.append({
                "id": item.pk,
                "item_name": item.name,
                "boss_name": item.boss.name,
                "item_value": item.value,
                "date_acquired": item.date_acquired,
                "status": item.status,
                "participants": participants,
                "participant_count": len(participants),
                "salary_breakdown": [
                    {"member_name": s.member.name, "member_role": s.member.role, "salary_amount": s.amount}
                    for s in salaries
                ],
                "total_salaries_paid": paid,
                "remainder_to_guild_fund": item.value - paid,
            })

            summary["total_items"] += 1
            summary["total_value"] += item.value
            summary["total_distributed"] += paid
            summary["total_to_guild_fund"] += item.value - paid
            summary["items_by_status"][item.status.lower()] += 1
            summary["value_by_status"][item.status.lower()] += item.value

        return self.ok("Market exchange report generated.", {
            "generated_at": timezone.now(),
            "summary": summary,
            "report": report,
        })


class DashboardView(ResponseMixin, APIView):
    """GET /api/admin/dashboard/"""
    permission_classes = [IsGuildAdmin]

    def get(self, request):
        top_earners = member_breakdown()[:5]
        recent_settlements = [
            {"id": i.pk, "item_name": i.name, "boss_name": i.boss.name, "value": i.value,
             "date_acquired": i.date_acquired, "updated_at": i.updated_at}
            for i in (LootItem.objects.filter(status=LootItem.Status.SETTLED)
                      .select_related('boss').order_by('-updated_at', '-id')[:5])
        ]
        return self.ok("Dashboard fetched successfully.", {
            "financials": financials_snapshot(),
            "loot_summary": status_breakdown(),
            "top_earners": top_earners,
            "recent_settlements": recent_settlements,
            "integrity_check": integrity_overview(),
        })
