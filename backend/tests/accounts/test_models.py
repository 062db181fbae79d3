"""
Tests for accounts app models.
"""

import pytest
from django.db import IntegrityError

from apps.accounts.models import Role, User
from tests.accounts.factories import UserFactory


@pytest.mark.django_db
class TestUserModel:
    """Tests for the tenant User model."""

    def test_defaults_to_member(self) -> None:
        user = User.objects.create(tenant_id="t1", user_id="u1")

        assert user.role == Role.MEMBER
        assert user.license == ""
        assert user.subscription_id == ""
        assert not user.is_admin

    def test_is_admin(self) -> None:
        assert UserFactory(role=Role.ADMIN).is_admin

    def test_tenant_and_user_id_are_unique_together(self) -> None:
        UserFactory(tenant_id="t1", user_id="u1")

        with pytest.raises(IntegrityError):
            User.objects.create(tenant_id="t1", user_id="u1")

    def test_same_user_id_in_another_tenant(self) -> None:
        """A directory object id is only unique inside its tenant."""
        UserFactory(tenant_id="t1", user_id="u1")
        UserFactory(tenant_id="t2", user_id="u1")

        assert User.objects.filter(user_id="u1").count() == 2

    def test_str(self) -> None:
        user = UserFactory.build(tenant_id="t1", user_id="u1", upn="a@example.com", role="Admin")

        assert str(user) == "a@example.com @ t1 (Admin)"
