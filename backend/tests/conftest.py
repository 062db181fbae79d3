"""
Shared pytest fixtures for all tests.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import OrganizationFactory, UserFactory
    from tests.marketplace.factories import SubscriptionFactory, PrincipalFactory

Example usage:

    def test_something(reconciler, marketplace_client):
        marketplace_client.fetch_subscription.return_value = SubscriptionFactory()
        subscription = reconciler.resolve("tok-1")
"""

import time
from unittest.mock import MagicMock

import pytest
from django.test import Client, RequestFactory

from apps.marketplace.client import MarketplaceClient, reset_marketplace_client
from apps.marketplace.schemas import AccessToken
from apps.marketplace.services import SubscriptionReconciler
from apps.marketplace.stores import InMemoryOrganizationStore, InMemoryUserStore, get_stores


@pytest.fixture(autouse=True)
def _reset_shared_clients():
    """
    Drop process-wide singletons between tests.

    The store cache and the marketplace client outlive a single test otherwise.
    """
    get_stores.cache_clear()
    reset_marketplace_client()
    yield
    get_stores.cache_clear()
    reset_marketplace_client()


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to call Django Ninja endpoint functions directly.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def organization_store() -> InMemoryOrganizationStore:
    """Empty in-memory organization store."""
    return InMemoryOrganizationStore()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    """Empty in-memory user store."""
    return InMemoryUserStore()


@pytest.fixture
def marketplace_client() -> MagicMock:
    """
    Mocked marketplace client with a valid app token.

    Set fetch_subscription.return_value (or side_effect) per test.
    """
    client = MagicMock(spec=MarketplaceClient)
    client.get_app_authentication_token.return_value = AccessToken(
        access_token="app-token", expires_on=time.time() + 3600
    )
    return client


@pytest.fixture
def reconciler(
    marketplace_client: MagicMock,
    organization_store: InMemoryOrganizationStore,
    user_store: InMemoryUserStore,
) -> SubscriptionReconciler:
    """Reconciler over the mocked client and in-memory stores."""
    return SubscriptionReconciler(marketplace_client, organization_store, user_store)
