"""
Factories for accounts and organizations models.

Used in tests to create test data.
"""

import factory
from factory.django import DjangoModelFactory

from apps.accounts.models import Role, User
from apps.organizations.models import Organization


class OrganizationFactory(DjangoModelFactory):
    """Factory for Organization model."""

    class Meta:
        model = Organization

    tenant_id = factory.Sequence(lambda n: f"tenant-{n}")
    name = factory.Faker("company")
    subscriptions = factory.LazyFunction(list)


class UserFactory(DjangoModelFactory):
    """Factory for tenant User model."""

    class Meta:
        model = User

    tenant_id = factory.Sequence(lambda n: f"tenant-{n}")
    user_id = factory.Sequence(lambda n: f"user-{n}")
    upn = factory.Sequence(lambda n: f"user{n}@example.com")
    role = Role.MEMBER
    license = "Free"
    subscription_id = ""
