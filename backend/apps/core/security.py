"""
Core security - authentication classes for API.
"""

from ninja.security import HttpBearer


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    Validates presence of a token in the Authorization header. Verifying the
    token itself belongs to the identity provider in front of this service.
    This class provides OpenAPI security scheme documentation.
    """

    def authenticate(self, request, token: str) -> str | None:
        """
        Check token exists.

        Returns token if present, None otherwise (triggers 401).
        """
        return token if token else None
