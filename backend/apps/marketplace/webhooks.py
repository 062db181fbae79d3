"""
Marketplace webhook handler.

The marketplace notifies lifecycle changes by POSTing operation payloads.
This is a plain Django view (not Django Ninja) so unknown payload shapes are
acknowledged rather than rejected by schema validation.
"""

import json

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from pydantic import ValidationError

from apps.core.logging import get_logger
from apps.marketplace.exceptions import MalformedRequestError
from apps.marketplace.schemas import Subscription
from apps.marketplace.services import get_subscription_reconciler

logger = get_logger(__name__)


@csrf_exempt
@require_POST
def marketplace_webhook(request: HttpRequest) -> HttpResponse:
    """
    Handle marketplace webhook operations.

    Only Unsubscribe changes local state; other actions are logged and
    acknowledged. Returns 500 on processing errors so the marketplace retries.
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning("marketplace_webhook_missing_token")
        return HttpResponse(status=401)

    try:
        payload = json.loads(request.body)
    except ValueError as e:
        logger.warning("marketplace_webhook_invalid_payload", error=str(e))
        return HttpResponse(status=400)

    if not isinstance(payload, dict):
        logger.warning("marketplace_webhook_invalid_payload", error="payload is not an object")
        return HttpResponse(status=400)

    action = payload.get("action")
    logger.info(
        "marketplace_webhook_received",
        action=action,
        operation_id=payload.get("id"),
        subscription_id=payload.get("subscriptionId"),
    )

    match action:
        case "Unsubscribe":
            data = payload.get("subscription")
            if not isinstance(data, dict):
                logger.warning("marketplace_webhook_missing_subscription", action=action)
                return HttpResponse(status=400)
            try:
                subscription = Subscription.model_validate(data)
                get_subscription_reconciler().unsubscribe(subscription)
            except (ValidationError, MalformedRequestError) as e:
                logger.warning("marketplace_webhook_malformed_subscription", error=str(e))
                return HttpResponse(status=400)
            except Exception:
                logger.exception("marketplace_webhook_handler_error", action=action)
                return HttpResponse(status=500)

        case _:
            logger.debug("marketplace_webhook_unhandled_action", action=action)

    return HttpResponse(status=200)
