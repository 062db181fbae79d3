"""Marketplace app configuration."""

from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    """Configuration for marketplace app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.marketplace"
