from django.urls import path
from .views import FinancialReportView, MemberReportView, MarketExchangeReportView

urlpatterns = [
    # Totals, integrity, per-member and per-boss breakdowns
    path("financial/", FinancialReportView.as_view(), name="report-financial"),

    # Earnings and attendance per member
    path("members/", MemberReportView.as_view(), name="report-members"),

    # Per loot item participants and salaries
    path("market-exchange/", MarketExchangeReportView.as_view(), name="report-market-exchange"),
]
