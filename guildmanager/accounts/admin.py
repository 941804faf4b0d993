from django.contrib import admin
from .models import BlacklistedAccessToken


@admin.register(BlacklistedAccessToken)
class BlacklistedAccessTokenAdmin(admin.ModelAdmin):
    list_display = ("id", "jti", "created_at", "expires_at")
    search_fields = ("jti",)
