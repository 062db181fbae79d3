"""
Marketplace fulfillment API client.

Three outbound calls: app credential exchange, token resolution, activation.
One client (and its httpx connection pool and cached credential) is shared by
the whole process; see get_marketplace_client().
"""

import threading
import time
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from apps.core.logging import get_logger
from apps.marketplace.exceptions import ActivationError, UpstreamResolveError
from apps.marketplace.schemas import AccessToken, ActivationRequest, Subscription
from config.settings.base import Settings, settings

logger = get_logger(__name__)

MARKETPLACE_TOKEN_HEADER = "x-ms-marketplace-token"

# Used when the identity endpoint omits both expires_on and expires_in
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class MarketplaceClient:
    """
    Thin wrapper over the fulfillment API.

    Safe for concurrent use: the only mutable state is the cached app token,
    and refreshing it is single-flight under a lock.
    """

    def __init__(
        self,
        *,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        auth_url: str,
        resource_id: str,
        api_base_url: str,
        resolve_endpoint: str,
        activate_endpoint: str,
        api_version: str,
        timeout: float = 10.0,
        token_refresh_margin: int = 300,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.auth_url = auth_url
        self.resource_id = resource_id
        self.api_base_url = api_base_url.rstrip("/")
        self.resolve_endpoint = resolve_endpoint
        self.activate_endpoint = activate_endpoint
        self.api_version = api_version
        self.timeout = timeout
        self.token_refresh_margin = token_refresh_margin
        self._http = http_client or httpx.Client(timeout=timeout)
        self._token: AccessToken | None = None
        self._token_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls, config: Settings, http_client: httpx.Client | None = None
    ) -> "MarketplaceClient":
        return cls(
            tenant_id=config.MARKETPLACE_TENANT_ID,
            client_id=config.MARKETPLACE_CLIENT_ID,
            client_secret=config.MARKETPLACE_CLIENT_SECRET,
            auth_url=config.MARKETPLACE_AUTH_URL,
            resource_id=config.MARKETPLACE_RESOURCE_ID,
            api_base_url=config.MARKETPLACE_API_BASE_URL,
            resolve_endpoint=config.MARKETPLACE_RESOLVE_ENDPOINT,
            activate_endpoint=config.MARKETPLACE_ACTIVATE_ENDPOINT,
            api_version=config.MARKETPLACE_API_VERSION,
            timeout=config.MARKETPLACE_HTTP_TIMEOUT,
            token_refresh_margin=config.MARKETPLACE_TOKEN_REFRESH_MARGIN,
            http_client=http_client,
        )

    def close(self) -> None:
        self._http.close()

    # Credential

    def get_app_authentication_token(self) -> AccessToken:
        """
        Return the cached app token, refreshing it when close to expiry.

        Concurrent callers that find the token stale wait on the lock; only the
        first one hits the identity endpoint.
        """
        token = self._token
        if token is not None and not self._is_stale(token):
            return token

        with self._token_lock:
            token = self._token
            if token is None or self._is_stale(token):
                token = self._request_app_token()
                self._token = token
        return token

    def _is_stale(self, token: AccessToken) -> bool:
        refresh_at = token.refresh_at
        if refresh_at is None:
            refresh_at = token.expires_on - self.token_refresh_margin
        return refresh_at <= time.time()

    def _request_app_token(self) -> AccessToken:
        url = self.auth_url.format(tenant_id=self.tenant_id)
        try:
            response = self._http.post(
                url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "resource": self.resource_id,
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("marketplace_token_timeout", error=str(e))
            raise UpstreamResolveError("App token request timed out", retryable=True) from e
        except httpx.HTTPError as e:
            logger.error("marketplace_token_transport_error", error=str(e))
            raise UpstreamResolveError(f"App token request failed: {e}") from e

        if response.is_error:
            logger.error("marketplace_token_rejected", status_code=response.status_code)
            raise UpstreamResolveError(
                f"App token request returned {response.status_code}",
                retryable=response.status_code >= 500,
            )

        now = time.time()
        try:
            payload = response.json()
            access_token = payload["access_token"]
            if "expires_on" in payload:
                expires_on = float(payload["expires_on"])
            else:
                lifetime = float(payload.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS))
                expires_on = now + lifetime
        except (ValueError, TypeError, KeyError) as e:
            raise UpstreamResolveError("Malformed app token response") from e

        # Short-lived tokens refresh halfway through their lifetime
        margin = min(self.token_refresh_margin, max(expires_on - now, 0) / 2)
        refresh_at = expires_on - margin

        logger.info("marketplace_token_refreshed", expires_on=expires_on, refresh_at=refresh_at)
        return AccessToken(access_token=access_token, expires_on=expires_on, refresh_at=refresh_at)

    # Fulfillment API

    def fetch_subscription(self, access_token: str, resolve_token: str) -> Subscription:
        """
        Exchange a landing page token for the subscription it refers to.

        Raises:
            UpstreamResolveError: transport failure, timeout, non-2xx, or a
                payload without a subscription object.
        """
        url = f"{self.api_base_url}{self.resolve_endpoint}"
        try:
            response = self._http.post(
                url,
                params={"api-version": self.api_version},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {access_token}",
                    MARKETPLACE_TOKEN_HEADER: resolve_token,
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("marketplace_resolve_timeout", error=str(e))
            raise UpstreamResolveError("Resolve request timed out", retryable=True) from e
        except httpx.HTTPError as e:
            logger.error("marketplace_resolve_transport_error", error=str(e))
            raise UpstreamResolveError(f"Resolve request failed: {e}") from e

        if response.is_error:
            logger.error("marketplace_resolve_rejected", status_code=response.status_code)
            raise UpstreamResolveError(
                f"Marketplace rejected resolve token ({response.status_code})",
                retryable=response.status_code >= 500,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamResolveError("Resolve response is not JSON") from e

        data = payload.get("subscription") if isinstance(payload, dict) else None
        if not data:
            raise UpstreamResolveError("Marketplace returned no subscription")

        try:
            return Subscription.model_validate(data)
        except ValidationError as e:
            raise UpstreamResolveError("Malformed subscription payload") from e

    def confirm_activation(
        self,
        subscription_id: str,
        access_token: str,
        activation: ActivationRequest,
    ) -> None:
        """
        Activate a subscription.

        The API can report application errors inside a 2xx response; a
        non-empty Message field is treated as a failed activation.
        """
        endpoint = self.activate_endpoint.format(subscription_id=quote(subscription_id, safe=""))
        url = f"{self.api_base_url}{endpoint}"
        body = activation.model_dump(by_alias=True, exclude_none=True)
        try:
            response = self._http.post(
                url,
                params={"api-version": self.api_version},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {access_token}",
                },
                json=body,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("marketplace_activate_timeout", subscription_id=subscription_id)
            raise ActivationError(
                "Activation request timed out",
                subscription_id=subscription_id,
                retryable=True,
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "marketplace_activate_transport_error",
                subscription_id=subscription_id,
                error=str(e),
            )
            raise ActivationError(
                f"Activation request failed: {e}", subscription_id=subscription_id
            ) from e

        if response.is_error:
            logger.error(
                "marketplace_activate_rejected",
                subscription_id=subscription_id,
                status_code=response.status_code,
            )
            raise ActivationError(
                f"Activation returned {response.status_code}",
                subscription_id=subscription_id,
            )

        message = _response_message(response)
        if message:
            logger.error(
                "marketplace_activate_logical_error",
                subscription_id=subscription_id,
                body=body,
                api_message=message,
            )
            raise ActivationError(
                f"Activation failed for subscription {subscription_id}: {message}",
                subscription_id=subscription_id,
            )


def _response_message(response: httpx.Response) -> str:
    """Message field of a JSON body, or empty for empty/non-JSON bodies."""
    if not response.content:
        return ""
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict):
        return str(payload.get("Message") or "")
    return ""


_client: MarketplaceClient | None = None
_client_lock = threading.Lock()


def get_marketplace_client() -> MarketplaceClient:
    """
    Get the process-wide marketplace client, creating it on first use.
    """
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = MarketplaceClient.from_settings(settings)
    return _client


def reset_marketplace_client() -> None:
    """Drop the shared client (tests, settings reload)."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None
