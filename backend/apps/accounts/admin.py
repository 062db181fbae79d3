"""
Admin configuration for accounts app.
"""

from django.contrib import admin

from apps.accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin for tenant users."""

    list_display = [
        "user_id",
        "upn",
        "tenant_id",
        "role",
        "license",
        "subscription_id",
        "updated_at",
    ]
    list_filter = ["role", "license"]
    search_fields = ["user_id", "upn", "tenant_id", "subscription_id"]
    readonly_fields = ["created_at", "updated_at"]
