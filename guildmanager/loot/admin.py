from django.contrib import admin
from .models import LootItem, Participation, Salary, GuildFinancials


class ParticipationInline(admin.TabularInline):
    model = Participation
    extra = 0


class SalaryInline(admin.TabularInline):
    model = Salary
    extra = 0
    readonly_fields = ("member", "amount")
    can_delete = False


@admin.register(LootItem)
class LootItemAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "boss", "value", "status", "date_acquired")
    list_filter = ("status", "boss")
    search_fields = ("name", "boss__name", "participants__name")
    date_hierarchy = "date_acquired"
    inlines = [ParticipationInline, SalaryInline]


@admin.register(Salary)
class SalaryAdmin(admin.ModelAdmin):
    list_display = ("id", "member", "loot_item", "amount", "created_at")
    search_fields = ("member__name", "loot_item__name")


@admin.register(GuildFinancials)
class GuildFinancialsAdmin(admin.ModelAdmin):
    list_display = ("key", "total_loot_value", "total_distributed", "guild_fund", "admin_fee", "updated_at")
    readonly_fields = ("total_loot_value", "total_distributed", "guild_fund", "admin_fee", "updated_at")
