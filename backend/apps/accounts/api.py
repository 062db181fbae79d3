"""
Account API endpoints.
"""

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.accounts.schemas import AddUserRequest, UserResponse
from apps.accounts.services import add_user
from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.marketplace.api import http_error_for
from apps.marketplace.exceptions import MarketplaceError

logger = get_logger(__name__)

router = Router(tags=["users"])
bearer_auth = BearerAuth()


@router.post(
    "/",
    response={
        200: UserResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="addUser",
    summary="Add a user to a tenant",
)
def add_user_endpoint(request: HttpRequest, payload: AddUserRequest) -> UserResponse:
    """
    Create or update a tenant user.

    With subscription_id, assigns one of that subscription's seats.
    """
    try:
        user = add_user(
            tenant_id=payload.tenant_id,
            user_id=payload.user_id,
            upn=payload.upn,
            subscription_id=payload.subscription_id,
        )
    except MarketplaceError as e:
        raise http_error_for(e) from e
    except Exception:
        logger.exception("add_user_failed", tenant_id=payload.tenant_id)
        raise HttpError(500, "Failed to add user")

    return UserResponse(**user.model_dump())
