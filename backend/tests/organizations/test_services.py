"""
Tests for organization services.
"""

import pytest

from apps.marketplace.exceptions import MalformedRequestError, SubscriptionNotFoundError
from apps.marketplace.stores import get_stores
from apps.organizations.services import SubscriptionLicense, get_license
from tests.marketplace.factories import SubscriptionFactory


def seed(organization_store, user_store) -> None:
    organization_store.find_one_and_update(
        {"tenant_id": "t1"},
        {
            "subscriptions": [
                SubscriptionFactory(
                    id="sub-1", plan_id="p1", quantity=5, saas_subscription_status="Subscribed"
                ),
                SubscriptionFactory(
                    id="sub-2", quantity=None, saas_subscription_status="Unsubscribed"
                ),
            ]
        },
    )
    for user_id in ("u1", "u2"):
        user_store.find_one_and_update(
            {"tenant_id": "t1", "user_id": user_id}, {"license": "p1", "subscription_id": "sub-1"}
        )
    user_store.find_one_and_update(
        {"tenant_id": "t2", "user_id": "u3"}, {"license": "p1", "subscription_id": "sub-1"}
    )


class TestGetLicense:
    """Tests for get_license."""

    def test_counts_assigned_seats(self, organization_store, user_store) -> None:
        seed(organization_store, user_store)

        licenses = get_license("t1", organization_store, user_store)

        by_id = {item.subscription_id: item for item in licenses}
        assert by_id["sub-1"].plan_id == "p1"
        assert by_id["sub-1"].status == "Subscribed"
        assert by_id["sub-1"].assigned == 2
        assert by_id["sub-1"].available == 3

    def test_unsubscribed_entries_are_listed(self, organization_store, user_store) -> None:
        seed(organization_store, user_store)

        licenses = get_license("t1", organization_store, user_store)

        assert [item.subscription_id for item in licenses] == ["sub-1", "sub-2"]
        assert licenses[1].status == "Unsubscribed"
        assert licenses[1].assigned == 0

    def test_unknown_tenant(self, organization_store, user_store) -> None:
        with pytest.raises(SubscriptionNotFoundError):
            get_license("t9", organization_store, user_store)

    def test_empty_tenant_id(self, organization_store, user_store) -> None:
        with pytest.raises(MalformedRequestError):
            get_license("", organization_store, user_store)

    def test_defaults_to_configured_stores(self, monkeypatch) -> None:
        """Should use the store backend from settings when none are passed."""
        monkeypatch.setattr("apps.marketplace.stores.settings.MARKETPLACE_STORE_BACKEND", "memory")
        organization_store, user_store = get_stores()
        seed(organization_store, user_store)

        assert len(get_license("t1")) == 2


class TestSubscriptionLicense:
    """Tests for SubscriptionLicense.available."""

    def test_available_never_negative(self) -> None:
        item = SubscriptionLicense("s", "o", "p", "Subscribed", quantity=2, assigned=3)

        assert item.available == 0

    def test_available_without_quantity(self) -> None:
        item = SubscriptionLicense("s", "o", "p", "Subscribed", quantity=None, assigned=3)

        assert item.available is None
