"""
Organization API schemas.
"""

from ninja import Schema


class SubscriptionLicenseResponse(Schema):
    """Seat usage of one subscription."""

    subscription_id: str
    offer_id: str
    plan_id: str
    status: str
    quantity: int | None
    assigned: int
    available: int | None  # None when the plan is not seat based


class LicenseResponse(Schema):
    """All subscriptions of a tenant with their seat usage."""

    tenant_id: str
    subscriptions: list[SubscriptionLicenseResponse]
