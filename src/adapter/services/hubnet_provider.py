"""Hubnet Fulfillment Provider

httpx implementation of FulfillmentProvider against the Hubnet business API.
"""

import hmac
import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.fulfillment_provider import (
    FulfillmentProvider,
    FulfillmentProviderError,
    FulfillmentReceipt,
    FulfillmentRequest,
)
from src.domain.network import Network

logger = logging.getLogger(__name__)

NETWORK_SLUGS: Dict[Network, str] = {
    Network.MTN: "mtn",
    Network.AIRTELTIGO: "at",
    Network.TELECEL: "telecel",
}


class HubnetFulfillmentProvider(FulfillmentProvider):
    """
    Hubnet client

    POST {base_url}/{network}-new-transaction with
    {phone, volume (MB), reference, referrer, webhook}.
    Any non-2xx, timeout, network error or unusable body is a failure.

    Status callbacks carry a shared token, appended to the registered webhook
    URL as ?token=.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://console.hubnet.app/live/api/context/business/transaction",
        webhook_url: Optional[str] = None,
        webhook_secret: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.webhook_url = webhook_url
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.transport = transport

    async def submit(self, request: FulfillmentRequest) -> FulfillmentReceipt:
        slug = NETWORK_SLUGS.get(request.network)
        if slug is None:
            raise FulfillmentProviderError(f"Network {request.network.value} is not deliverable")

        url = f"{self.base_url}/{slug}-new-transaction"
        payload: Dict[str, Any] = {
            "phone": request.phone_number,
            "volume": request.data_amount_mb,
            "reference": request.reference,
            "referrer": request.phone_number,
        }
        if self.webhook_url:
            payload["webhook"] = self.callback_url()

        logger.info(f"[HUBNET] Submitting {request.reference}: {slug} {request.data_amount_mb}MB to {request.phone_number}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={
                        "token": f"Bearer {self.api_token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            logger.error(f"[HUBNET] {request.reference} timed out: {e}")
            raise FulfillmentProviderError("Provider request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"[HUBNET] {request.reference} request failed: {e}")
            raise FulfillmentProviderError(f"Provider request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            logger.error(f"[HUBNET] {request.reference} rejected with HTTP {response.status_code}: {response.text}")
            raise FulfillmentProviderError(message or f"Provider returned HTTP {response.status_code}")

        if not isinstance(body, dict):
            raise FulfillmentProviderError("Malformed provider response")

        if body.get("status") is False or body.get("success") is False:
            raise FulfillmentProviderError(body.get("message") or "Transaction failed")

        transaction_id = body.get("transaction_id") or body.get("transactionId")
        logger.info(f"[HUBNET] {request.reference} accepted, transaction_id={transaction_id}")
        return FulfillmentReceipt(
            transaction_id=str(transaction_id) if transaction_id is not None else None,
            raw=body,
        )

    def callback_url(self) -> Optional[str]:
        if not self.webhook_url or not self.webhook_secret:
            return self.webhook_url
        return str(httpx.URL(self.webhook_url).copy_merge_params({"token": self.webhook_secret}))

    def verify_callback(self, token: Optional[str]) -> bool:
        if not token or not self.webhook_secret:
            return False
        return hmac.compare_digest(self.webhook_secret.encode("utf-8"), token.encode("utf-8"))
