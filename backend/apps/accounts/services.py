"""
Account services - adding users to a tenant and assigning licenses.
"""

from apps.accounts.models import FREE_LICENSE, Role
from apps.core.logging import get_logger
from apps.marketplace.exceptions import (
    MalformedRequestError,
    SeatLimitExceededError,
    SubscriptionNotFoundError,
)
from apps.marketplace.schemas import UserRecord
from apps.marketplace.stores import OrganizationStore, UserStore, get_stores

logger = get_logger(__name__)


def add_user(
    tenant_id: str,
    user_id: str,
    upn: str = "",
    subscription_id: str | None = None,
    organization_store: OrganizationStore | None = None,
    user_store: UserStore | None = None,
) -> UserRecord:
    """
    Add a user to a tenant, optionally assigning a seat of a subscription.

    Without a subscription the user is created on the free license; an
    existing user only has its upn refreshed. With a subscription, the
    subscription must be Subscribed and have a free seat unless the user
    already holds one. Existing admins stay admins.

    Raises:
        MalformedRequestError: empty tenant or user id.
        SubscriptionNotFoundError: no active subscription with that id.
        SeatLimitExceededError: every seat is already assigned.
    """
    if not tenant_id or not user_id:
        raise MalformedRequestError(
            "Tenant id and user id are required", tenant_id=tenant_id or None
        )

    if organization_store is None or user_store is None:
        default_organizations, default_users = get_stores()
        organization_store = organization_store or default_organizations
        user_store = user_store or default_users

    key = {"tenant_id": tenant_id, "user_id": user_id}
    existing = user_store.find_one(**key)

    if not subscription_id:
        patch: dict = {"upn": upn} if upn else {}
        if existing is None:
            patch.update(role=Role.MEMBER, license=FREE_LICENSE, subscription_id="")
        user = user_store.find_one_and_update(key, patch)
        logger.info("user_added", tenant_id=tenant_id, user_id=user_id)
        return user

    organization = organization_store.find_one(tenant_id=tenant_id)
    subscription = organization.find_subscription(subscription_id) if organization else None
    if subscription is None or not subscription.is_subscribed:
        raise SubscriptionNotFoundError(
            f"Tenant {tenant_id} has no active subscription {subscription_id}",
            tenant_id=tenant_id,
            subscription_id=subscription_id,
        )

    holds_seat = existing is not None and existing.subscription_id == subscription_id
    if not holds_seat and subscription.quantity is not None:
        assigned = len(user_store.find(tenant_id=tenant_id, subscription_id=subscription_id))
        if assigned >= subscription.quantity:
            logger.warning(
                "user_license_seat_limit",
                tenant_id=tenant_id,
                subscription_id=subscription_id,
                quantity=subscription.quantity,
            )
            raise SeatLimitExceededError(
                f"All {subscription.quantity} seats of subscription {subscription_id} are assigned",
                tenant_id=tenant_id,
                subscription_id=subscription_id,
            )

    patch = {"license": subscription.plan_id, "subscription_id": subscription_id}
    if upn:
        patch["upn"] = upn
    if existing is None:
        patch["role"] = Role.MEMBER
    user = user_store.find_one_and_update(key, patch)
    logger.info(
        "user_license_assigned",
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        user_id=user_id,
    )
    return user
