"""
Accounts models - tenant users and their license assignment.
"""

from django.db import models

from apps.core.models import TimestampedModel

FREE_LICENSE = "Free"


class Role(models.TextChoices):
    """Tenant-level role. Subscription owners are admins."""

    ADMIN = "Admin", "Admin"
    MEMBER = "Member", "Member"


class User(TimestampedModel):
    """
    A person inside a tenant, keyed by (tenant_id, user_id).

    Not the Django auth user: this record only carries the role and the
    license a marketplace subscription grants. subscription_id refers to an
    entry in the owning Organization's subscription list by id.
    """

    tenant_id = models.CharField(max_length=255, db_index=True)
    user_id = models.CharField(
        max_length=255,
        help_text="Directory object id of the user",
    )
    upn = models.CharField(
        max_length=320,
        blank=True,
        help_text="User principal name (usually the email address)",
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.MEMBER,
    )
    license = models.CharField(
        max_length=255,
        blank=True,
        help_text="Plan id granted by the subscription, 'Free', or empty",
    )
    subscription_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Marketplace subscription granting the license, or empty",
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "user_id"],
                name="accounts_user_tenant_user_unique",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.upn or self.user_id} @ {self.tenant_id} ({self.role})"

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == Role.ADMIN
