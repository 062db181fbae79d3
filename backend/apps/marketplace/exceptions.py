"""
Exceptions for the marketplace app.

Callers branch on the class (and ``retryable``) rather than on messages.
"""


class MarketplaceError(Exception):
    """Base exception for subscription lifecycle errors."""

    retryable = False

    def __init__(
        self,
        message: str,
        tenant_id: str | None = None,
        subscription_id: str | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.tenant_id = tenant_id
        self.subscription_id = subscription_id
        if retryable is not None:
            self.retryable = retryable


class MalformedRequestError(MarketplaceError):
    """Inbound event is missing the tenant id or subscription id."""

    pass


class UpstreamResolveError(MarketplaceError):
    """Credential exchange or token resolution against the marketplace failed."""

    retryable = True


class ActivationError(MarketplaceError):
    """Activation call failed or the marketplace reported a logical error."""

    pass


class UserDowngradeError(MarketplaceError):
    """A user could not be reset to the unlicensed state during unsubscribe."""

    pass


class SubscriptionNotFoundError(MarketplaceError):
    """The tenant has no organization or no subscription with that id."""

    pass


class SeatLimitExceededError(MarketplaceError):
    """Assigning another license would exceed the subscription quantity."""

    pass
