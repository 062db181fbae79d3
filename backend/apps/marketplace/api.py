"""
Marketplace API endpoints.

Landing page resolve flow. Unsubscribe arrives through the webhook view.
"""

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.marketplace.exceptions import (
    ActivationError,
    MalformedRequestError,
    MarketplaceError,
    SeatLimitExceededError,
    SubscriptionNotFoundError,
    UpstreamResolveError,
)
from apps.marketplace.schemas import ResolveRequest, SubscriptionResponse
from apps.marketplace.services import get_subscription_reconciler

logger = get_logger(__name__)

router = Router(tags=["marketplace"])
bearer_auth = BearerAuth()

ERROR_STATUS: dict[type[MarketplaceError], int] = {
    MalformedRequestError: 400,
    SubscriptionNotFoundError: 404,
    SeatLimitExceededError: 409,
    UpstreamResolveError: 502,
    ActivationError: 502,
}


def http_error_for(error: MarketplaceError) -> HttpError:
    """Map a marketplace error to the HTTP error the caller should see."""
    for error_class, status in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return HttpError(status, str(error))
    return HttpError(500, "Subscription processing failed")


@router.post(
    "/resolve",
    response={
        200: SubscriptionResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        502: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="resolveSubscription",
    summary="Resolve and activate a marketplace purchase",
)
def resolve_subscription(request: HttpRequest, payload: ResolveRequest) -> SubscriptionResponse:
    """
    Exchange the landing page token for the purchased subscription.

    Activates it if needed and provisions the purchaser (and beneficiary) as
    tenant admins. Safe to call again with the same token.
    """
    reconciler = get_subscription_reconciler()
    try:
        subscription = reconciler.resolve(payload.token)
    except MarketplaceError as e:
        raise http_error_for(e) from e
    except Exception:
        logger.exception("resolve_subscription_endpoint_failed")
        raise HttpError(500, "Failed to resolve subscription")

    return SubscriptionResponse(
        id=subscription.id,
        tenant_id=subscription.tenant_id,
        offer_id=subscription.offer_id,
        plan_id=subscription.plan_id,
        status=subscription.saas_subscription_status,
        quantity=subscription.quantity,
    )
