"""
Django Ninja API configuration.
"""

from django.http import HttpRequest
from ninja import NinjaAPI

from apps.accounts.api import router as users_router
from apps.marketplace.api import router as marketplace_router
from apps.organizations.api import router as organizations_router

api = NinjaAPI(
    title="Marketplace Subscription API",
    version="1.0.0",
    description="Marketplace SaaS subscription fulfillment and license management.",
    openapi_extra={
        "tags": [
            {
                "name": "marketplace",
                "description": "Landing page token resolution and activation",
            },
            {
                "name": "organizations",
                "description": "Tenant subscriptions and seat usage",
            },
            {
                "name": "users",
                "description": "Tenant users and license assignment",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
    },
)

# Register routers
api.add_router("/marketplace", marketplace_router)
api.add_router("/organizations", organizations_router)
api.add_router("/users", users_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
