"""
Marketplace subscription services.

Drives a tenant's organization and user records to match a marketplace event:
a landing page resolve token, or an unsubscribe notification.

Marketplace calls happen before any local write, so a failed activation leaves
no trace. Later steps are not rolled back on failure; every step is an upsert
or a whole-list replace, so re-running the same event converges.
"""

from apps.accounts.models import FREE_LICENSE, Role
from apps.core.logging import get_logger
from apps.marketplace.client import MarketplaceClient, get_marketplace_client
from apps.marketplace.exceptions import (
    MalformedRequestError,
    MarketplaceError,
    SubscriptionNotFoundError,
    UpstreamResolveError,
    UserDowngradeError,
)
from apps.marketplace.schemas import (
    ActivationRequest,
    OrganizationRecord,
    SaasSubscriptionStatus,
    Subscription,
    UserRecord,
)
from apps.marketplace.stores import OrganizationStore, UserStore, get_stores

logger = get_logger(__name__)


class SubscriptionReconciler:
    """
    Resolve and unsubscribe workflows.

    Holds no per-request state; the client and stores are injected so one
    instance can serve concurrent requests.
    """

    def __init__(
        self,
        client: MarketplaceClient,
        organization_store: OrganizationStore,
        user_store: UserStore,
    ) -> None:
        self.client = client
        self.organizations = organization_store
        self.users = user_store

    def resolve(self, resolve_token: str) -> Subscription:
        """
        Resolve a landing page token into an active subscription.

        Activates the subscription if needed, records it on the tenant's
        organization (replacing any previous copy) and makes the purchaser and
        beneficiary admins holding its license.

        Raises:
            MalformedRequestError: empty token.
            UpstreamResolveError: token rejected or subscription payload unusable.
            ActivationError: activation failed; nothing was written.
        """
        if not resolve_token or not resolve_token.strip():
            raise MalformedRequestError("Resolve token is required")

        logger.info("resolve_subscription_started")

        try:
            access_token = self.client.get_app_authentication_token().access_token
            subscription = self.client.fetch_subscription(access_token, resolve_token)
        except MarketplaceError as e:
            logger.error("resolve_subscription_failed", error=str(e), error_type=type(e).__name__)
            raise

        tenant_id = subscription.tenant_id
        log = logger.bind(tenant_id=tenant_id, subscription_id=subscription.id)

        if not subscription.id or not tenant_id:
            log.error("resolve_subscription_incomplete_payload")
            raise UpstreamResolveError(
                "Resolved subscription has no id or purchaser tenant id",
                tenant_id=tenant_id or None,
                subscription_id=subscription.id or None,
            )

        try:
            self._activate(subscription, access_token)
            organization = self._get_or_create_organization(tenant_id)
            self._save_subscription(organization, subscription)
            owners = self._upsert_owners(subscription)
        except Exception as e:
            log.error("resolve_subscription_failed", error=str(e), error_type=type(e).__name__)
            raise

        log.info(
            "resolve_subscription_finished",
            status=subscription.saas_subscription_status,
            owners=[owner.user_id for owner in owners],
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """
        Release every license the subscription granted, then flag it Unsubscribed.

        Users go first: if the process dies in between, the worst case is a
        subscription still marked Subscribed with nobody holding its license.
        The subscription stays in the organization's list for history.

        Raises:
            MalformedRequestError: missing subscription id or purchaser tenant id.
            UserDowngradeError: a user could not be downgraded; users processed
                before it stay downgraded.
            SubscriptionNotFoundError: the tenant has no such subscription.
        """
        tenant_id = subscription.tenant_id
        if not subscription.id or not tenant_id:
            raise MalformedRequestError(
                "Unsubscribe requires a subscription id and purchaser tenant id",
                tenant_id=tenant_id or None,
                subscription_id=subscription.id or None,
            )

        log = logger.bind(tenant_id=tenant_id, subscription_id=subscription.id)
        log.info(
            "unsubscribe_started",
            offer_id=subscription.offer_id,
            quantity=subscription.quantity,
            user_id=subscription.purchaser.object_id,
        )

        try:
            self._remove_subscription_users(tenant_id, subscription.id)
            self._mark_unsubscribed(tenant_id, subscription.id)
        except Exception as e:
            log.error("unsubscribe_failed", error=str(e), error_type=type(e).__name__)
            raise

        log.info("unsubscribe_finished")

    def _activate(self, subscription: Subscription, access_token: str) -> None:
        if subscription.is_subscribed:
            logger.info(
                "subscription_already_active",
                tenant_id=subscription.tenant_id,
                subscription_id=subscription.id,
            )
            return

        self.client.confirm_activation(
            subscription.id,
            access_token,
            ActivationRequest(plan_id=subscription.plan_id, quantity=subscription.quantity),
        )
        subscription.saas_subscription_status = SaasSubscriptionStatus.SUBSCRIBED
        logger.info(
            "subscription_activated",
            tenant_id=subscription.tenant_id,
            subscription_id=subscription.id,
            plan_id=subscription.plan_id,
            quantity=subscription.quantity,
        )

    def _get_or_create_organization(self, tenant_id: str) -> OrganizationRecord:
        return self.organizations.find_one_and_update(
            {"tenant_id": tenant_id}, {"tenant_id": tenant_id}
        )

    def _save_subscription(
        self, organization: OrganizationRecord, subscription: Subscription
    ) -> None:
        """Replace any copy of the subscription with this one and write the whole list."""
        subscriptions = [s for s in organization.subscriptions if s.id != subscription.id]
        subscriptions.append(subscription)
        self.organizations.find_one_and_update(
            {"tenant_id": organization.tenant_id},
            {"subscriptions": subscriptions},
        )

    def _upsert_owners(self, subscription: Subscription) -> list[UserRecord]:
        if subscription.is_subscribed:
            grant = {
                "role": Role.ADMIN,
                "license": subscription.plan_id,
                "subscription_id": subscription.id,
            }
        else:
            grant = {"role": Role.MEMBER, "license": "", "subscription_id": ""}

        owners = []
        for principal in subscription.owners():
            # Owners are provisioned in the purchasing tenant
            filters = {"tenant_id": subscription.tenant_id, "user_id": principal.object_id}
            owner = self.users.find_one_and_update(filters, {"upn": principal.email_id, **grant})
            owners.append(owner)
        return owners

    def _remove_subscription_users(self, tenant_id: str, subscription_id: str) -> None:
        users = self.users.find(tenant_id=tenant_id, subscription_id=subscription_id)
        downgrade = {"role": Role.MEMBER, "subscription_id": "", "license": FREE_LICENSE}

        for user in users:
            try:
                self.users.find_one_and_update(
                    {"tenant_id": user.tenant_id, "user_id": user.user_id}, downgrade
                )
            except Exception as e:
                logger.error(
                    "subscription_user_downgrade_failed",
                    tenant_id=tenant_id,
                    subscription_id=subscription_id,
                    user_id=user.user_id,
                    error=str(e),
                )
                raise UserDowngradeError(
                    f"Failed to downgrade user {user.user_id}",
                    tenant_id=tenant_id,
                    subscription_id=subscription_id,
                ) from e
            logger.info(
                "subscription_user_downgraded",
                tenant_id=tenant_id,
                subscription_id=subscription_id,
                user_id=user.user_id,
            )

    def _mark_unsubscribed(self, tenant_id: str, subscription_id: str) -> None:
        organization = self.organizations.find_one(tenant_id=tenant_id)
        current = organization.find_subscription(subscription_id) if organization else None
        if current is None:
            logger.error(
                "unsubscribe_subscription_not_found",
                tenant_id=tenant_id,
                subscription_id=subscription_id,
            )
            raise SubscriptionNotFoundError(
                f"Tenant {tenant_id} has no subscription {subscription_id}",
                tenant_id=tenant_id,
                subscription_id=subscription_id,
            )

        current.saas_subscription_status = SaasSubscriptionStatus.UNSUBSCRIBED
        subscriptions = [s for s in organization.subscriptions if s.id != subscription_id]
        subscriptions.append(current)
        self.organizations.find_one_and_update(
            {"tenant_id": tenant_id}, {"subscriptions": subscriptions}
        )


def get_subscription_reconciler() -> SubscriptionReconciler:
    """Build a reconciler over the shared client and the configured stores."""
    organization_store, user_store = get_stores()
    return SubscriptionReconciler(get_marketplace_client(), organization_store, user_store)
