from django.contrib import admin
from .models import Boss


@admin.register(Boss)
class BossAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "type", "respawn_time", "last_killed")
    list_filter = ("type",)
    search_fields = ("name",)
