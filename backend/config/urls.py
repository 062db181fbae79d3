"""
URL configuration for the backend.
"""

from django.contrib import admin
from django.urls import path

from apps.marketplace.webhooks import marketplace_webhook

from .api import api

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", api.urls),
    # Webhooks - outside Django Ninja for raw request handling
    path("webhooks/marketplace/", marketplace_webhook, name="marketplace-webhook"),
]
