"""
Organizations models - one record per marketplace tenant.
"""

from django.db import models

from apps.core.models import TimestampedModel


class Organization(TimestampedModel):
    """
    A customer tenant.

    Embeds its full marketplace subscription list as a JSON document. The list
    is only ever replaced as a whole, never patched per element.
    """

    tenant_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="Directory tenant id of the purchasing organization",
    )
    name = models.CharField(max_length=255, blank=True)
    subscriptions = models.JSONField(
        default=list,
        blank=True,
        help_text="Marketplace subscription documents (camelCase), unique by id",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name or self.tenant_id
