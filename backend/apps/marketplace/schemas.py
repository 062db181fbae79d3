"""
Marketplace schemas.

Subscription documents mirror the fulfillment API payload: camelCase on the
wire and in storage, snake_case attributes in Python. Fields the reconciler
does not interpret are passed through untouched, including unknown ones.
"""

from ninja import Schema
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from apps.accounts.models import Role


class SaasSubscriptionStatus:
    """
    Subscription states reported by the fulfillment API.

    Only SUBSCRIBED is interpreted; other values pass through as plain strings.
    """

    NOT_STARTED = "NotStarted"
    PENDING_FULFILLMENT_START = "PendingFulfillmentStart"
    SUBSCRIBED = "Subscribed"
    SUSPENDED = "Suspended"
    UNSUBSCRIBED = "Unsubscribed"


class MarketplaceModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Principal(MarketplaceModel):
    """Purchaser or beneficiary of a subscription."""

    email_id: str = ""
    object_id: str = ""
    tenant_id: str = ""
    pid: str = ""


class Term(MarketplaceModel):
    term_unit: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class Subscription(MarketplaceModel):
    """One marketplace purchase."""

    id: str = ""
    publisher_id: str = ""
    offer_id: str = ""
    plan_id: str = ""
    name: str = ""
    saas_subscription_status: str = ""
    purchaser: Principal = Field(default_factory=Principal)
    beneficiary: Principal | None = None
    term: Term | None = None
    auto_renew: bool = False
    is_test: bool = False
    is_free_trial: bool = False
    allowed_customer_operations: list[str] = Field(default_factory=list)
    sandbox_type: str | None = None
    last_modified: str | None = None
    quantity: int | None = None
    session_mode: str | None = None

    @property
    def tenant_id(self) -> str:
        return self.purchaser.tenant_id

    @property
    def is_subscribed(self) -> bool:
        return self.saas_subscription_status == SaasSubscriptionStatus.SUBSCRIBED

    def owners(self) -> list[Principal]:
        """
        Principals that own the subscription.

        A self-purchase (or a payload without a beneficiary) has one owner.
        """
        if self.beneficiary is None or self.beneficiary.object_id == self.purchaser.object_id:
            return [self.purchaser]
        return [self.purchaser, self.beneficiary]

    def to_document(self) -> dict:
        """Storage form: camelCase, only the keys the payload carried or we set."""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


class ActivationRequest(MarketplaceModel):
    """Body of the activate call."""

    plan_id: str
    quantity: int | None = None


class AccessToken(BaseModel):
    """App-level credential for the fulfillment API."""

    access_token: str
    expires_on: float = 0.0  # epoch seconds
    refresh_at: float | None = None  # epoch seconds; defaults to expires_on minus the margin


class OrganizationRecord(BaseModel):
    """Backend-independent view of an Organization row."""

    tenant_id: str
    name: str = ""
    subscriptions: list[Subscription] = Field(default_factory=list)

    def find_subscription(self, subscription_id: str) -> Subscription | None:
        return next((s for s in self.subscriptions if s.id == subscription_id), None)


class UserRecord(BaseModel):
    """Backend-independent view of a tenant User row."""

    tenant_id: str
    user_id: str
    upn: str = ""
    role: str = Role.MEMBER.value
    license: str = ""
    subscription_id: str = ""


# API schemas


class ResolveRequest(Schema):
    """Token from the marketplace landing page redirect."""

    token: str


class SubscriptionResponse(Schema):
    """Outcome of a resolve."""

    id: str
    tenant_id: str
    offer_id: str
    plan_id: str
    status: str
    quantity: int | None
