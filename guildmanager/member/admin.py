from django.contrib import admin
from .models import Member, RolePeriod, Attendance


class RolePeriodInline(admin.TabularInline):
    model = RolePeriod
    extra = 0
    fields = ("role", "start_date", "end_date", "reason")


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "role", "promotion_date", "demotion_date", "created_at")
    list_filter = ("role",)
    search_fields = ("name",)
    readonly_fields = ("role",)
    inlines = [RolePeriodInline]


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("id", "member", "week", "attended")
    list_filter = ("attended", "week")
    search_fields = ("member__name",)
