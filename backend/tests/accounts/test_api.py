"""
Tests for accounts API endpoints.
"""

import json
from unittest.mock import patch

import pytest
from ninja.errors import HttpError

from apps.accounts.api import add_user_endpoint
from apps.accounts.models import User
from apps.accounts.schemas import AddUserRequest
from apps.marketplace.exceptions import SeatLimitExceededError, SubscriptionNotFoundError
from apps.marketplace.schemas import UserRecord
from tests.accounts.factories import OrganizationFactory


class TestAddUserEndpoint:
    """Tests for add_user_endpoint."""

    @patch("apps.accounts.api.add_user")
    def test_returns_user(self, mock_add_user, request_factory) -> None:
        mock_add_user.return_value = UserRecord(
            tenant_id="t1", user_id="u1", upn="u1@example.com", license="p1", subscription_id="s1"
        )
        request = request_factory.post("/api/v1/users/")
        payload = AddUserRequest(
            tenant_id="t1", user_id="u1", upn="u1@example.com", subscription_id="s1"
        )

        response = add_user_endpoint(request, payload)

        mock_add_user.assert_called_once_with(
            tenant_id="t1", user_id="u1", upn="u1@example.com", subscription_id="s1"
        )
        assert response.license == "p1"
        assert response.role == "Member"

    @pytest.mark.parametrize(
        "error,status",
        [(SubscriptionNotFoundError("x"), 404), (SeatLimitExceededError("x"), 409)],
    )
    @patch("apps.accounts.api.add_user")
    def test_errors_are_mapped(self, mock_add_user, request_factory, error, status) -> None:
        mock_add_user.side_effect = error
        request = request_factory.post("/api/v1/users/")

        with pytest.raises(HttpError) as exc_info:
            add_user_endpoint(request, AddUserRequest(tenant_id="t1", user_id="u1"))

        assert exc_info.value.status_code == status


@pytest.mark.django_db
class TestAddUserHttp:
    """Full request cycle against the ORM stores."""

    def test_assigns_seat_over_http(self, api_client) -> None:
        OrganizationFactory(
            tenant_id="t1",
            subscriptions=[
                {
                    "id": "sub-1",
                    "planId": "p1",
                    "quantity": 1,
                    "saasSubscriptionStatus": "Subscribed",
                }
            ],
        )

        response = api_client.post(
            "/api/v1/users/",
            data=json.dumps({"tenant_id": "t1", "user_id": "u1", "subscription_id": "sub-1"}),
            content_type="application/json",
            HTTP_AUTHORIZATION="Bearer portal-session",
        )

        assert response.status_code == 200
        assert response.json()["license"] == "p1"
        user = User.objects.get(tenant_id="t1", user_id="u1")
        assert user.subscription_id == "sub-1"

    def test_seat_limit_over_http(self, api_client) -> None:
        OrganizationFactory(
            tenant_id="t1",
            subscriptions=[
                {
                    "id": "sub-1",
                    "planId": "p1",
                    "quantity": 0,
                    "saasSubscriptionStatus": "Subscribed",
                }
            ],
        )

        response = api_client.post(
            "/api/v1/users/",
            data=json.dumps({"tenant_id": "t1", "user_id": "u1", "subscription_id": "sub-1"}),
            content_type="application/json",
            HTTP_AUTHORIZATION="Bearer portal-session",
        )

        assert response.status_code == 409
