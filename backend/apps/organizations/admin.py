"""
Admin configuration for organizations app.
"""

from django.contrib import admin

from apps.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Admin for tenant organizations."""

    list_display = ["tenant_id", "name", "subscription_count", "updated_at"]
    search_fields = ["tenant_id", "name"]
    readonly_fields = ["created_at", "updated_at"]

    def subscription_count(self, obj: Organization) -> int:
        return len(obj.subscriptions or [])

    subscription_count.short_description = "Subscriptions"  # type: ignore[attr-defined]
