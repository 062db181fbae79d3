"""
Organization services - license overview for a tenant.
"""

from dataclasses import dataclass

from apps.marketplace.exceptions import MalformedRequestError, SubscriptionNotFoundError
from apps.marketplace.stores import OrganizationStore, UserStore, get_stores


@dataclass
class SubscriptionLicense:
    """Seat usage of one subscription."""

    subscription_id: str
    offer_id: str
    plan_id: str
    status: str
    quantity: int | None
    assigned: int

    @property
    def available(self) -> int | None:
        """Unassigned seats, or None when the plan is not seat based."""
        if self.quantity is None:
            return None
        return max(self.quantity - self.assigned, 0)


def get_license(
    tenant_id: str,
    organization_store: OrganizationStore | None = None,
    user_store: UserStore | None = None,
) -> list[SubscriptionLicense]:
    """
    List the tenant's subscriptions with how many seats are assigned.

    Unsubscribed subscriptions are included; they keep their history entry.

    Raises:
        MalformedRequestError: empty tenant id.
        SubscriptionNotFoundError: the tenant has never resolved a subscription.
    """
    if not tenant_id:
        raise MalformedRequestError("Tenant id is required")

    if organization_store is None or user_store is None:
        default_organizations, default_users = get_stores()
        organization_store = organization_store or default_organizations
        user_store = user_store or default_users

    organization = organization_store.find_one(tenant_id=tenant_id)
    if organization is None:
        raise SubscriptionNotFoundError(
            f"No organization for tenant {tenant_id}", tenant_id=tenant_id
        )

    return [
        SubscriptionLicense(
            subscription_id=subscription.id,
            offer_id=subscription.offer_id,
            plan_id=subscription.plan_id,
            status=subscription.saas_subscription_status,
            quantity=subscription.quantity,
            assigned=len(user_store.find(tenant_id=tenant_id, subscription_id=subscription.id)),
        )
        for subscription in organization.subscriptions
    ]
