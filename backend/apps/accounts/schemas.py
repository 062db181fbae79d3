"""
Account API schemas.
"""

from ninja import Schema


class AddUserRequest(Schema):
    """Add a user to a tenant, optionally assigning a subscription seat."""

    tenant_id: str
    user_id: str
    upn: str = ""
    subscription_id: str | None = None


class UserResponse(Schema):
    """A tenant user and the license it holds."""

    tenant_id: str
    user_id: str
    upn: str
    role: str
    license: str
    subscription_id: str
