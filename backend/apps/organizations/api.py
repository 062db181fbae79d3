"""
Organization API endpoints.
"""

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.marketplace.api import http_error_for
from apps.marketplace.exceptions import MarketplaceError
from apps.organizations.schemas import LicenseResponse, SubscriptionLicenseResponse
from apps.organizations.services import get_license

logger = get_logger(__name__)

router = Router(tags=["organizations"])
bearer_auth = BearerAuth()


@router.get(
    "/{tenant_id}/license",
    response={200: LicenseResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getOrganizationLicense",
    summary="Get the tenant's subscriptions and seat usage",
)
def get_organization_license(request: HttpRequest, tenant_id: str) -> LicenseResponse:
    """
    List every subscription the tenant has resolved, with assigned seats.
    """
    try:
        licenses = get_license(tenant_id)
    except MarketplaceError as e:
        raise http_error_for(e) from e
    except Exception:
        logger.exception("organization_license_failed", tenant_id=tenant_id)
        raise HttpError(500, "Failed to load license")

    return LicenseResponse(
        tenant_id=tenant_id,
        subscriptions=[
            SubscriptionLicenseResponse(
                subscription_id=item.subscription_id,
                offer_id=item.offer_id,
                plan_id=item.plan_id,
                status=item.status,
                quantity=item.quantity,
                assigned=item.assigned,
                available=item.available,
            )
            for item in licenses
        ],
    )
