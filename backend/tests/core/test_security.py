"""
Tests for core security module.

Tests BearerAuth authentication class.
"""

from django.http import HttpRequest

from apps.core.security import BearerAuth


class TestBearerAuth:
    """Tests for BearerAuth authentication class."""

    def test_authenticate_returns_token(self) -> None:
        """Should return the token when present."""
        result = BearerAuth().authenticate(HttpRequest(), "test-token-123")

        assert result == "test-token-123"

    def test_authenticate_returns_none_for_empty_token(self) -> None:
        """Should return None (401) for an empty token."""
        assert BearerAuth().authenticate(HttpRequest(), "") is None

    def test_missing_header_is_rejected(self, request_factory) -> None:
        """Should not authenticate a request without an Authorization header."""
        request = request_factory.get("/api/v1/organizations/t1/license")

        assert BearerAuth()(request) is None

    def test_bearer_header_is_accepted(self, request_factory) -> None:
        request = request_factory.get(
            "/api/v1/organizations/t1/license", HTTP_AUTHORIZATION="Bearer abc"
        )

        assert BearerAuth()(request) == "abc"
