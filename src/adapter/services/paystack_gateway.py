"""Paystack Payment Gateway

httpx implementation of PaymentGateway against the Paystack REST API.
Paystack amounts are integers in minor units (pesewas); the rest of the
system works in major units.
"""

import hashlib
import hmac
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
import httpx
from src.app.services.payment_gateway import (
    ChargeVerification,
    PaymentGateway,
    PaymentGatewayError,
    PaymentSession,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: Any) -> Decimal:
    return (Decimal(str(amount)) / 100).quantize(Decimal("0.01"))


class PaystackPaymentGateway(PaymentGateway):
    """
    Paystack gateway client

    Endpoints:
    - POST /transaction/initialize
    - GET /transaction/verify/{reference}

    Webhooks are signed with HMAC-SHA512 of the raw body using the secret key.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        callback_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            secret_key: Paystack secret key (API auth and webhook signing)
            base_url: API root
            callback_url: Where Paystack redirects the payer after checkout
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.callback_url = callback_url
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            },
        )

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"[PAYSTACK] {method} {path} timed out: {e}")
            raise PaymentGatewayError("Payment gateway timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"[PAYSTACK] {method} {path} returned {e.response.status_code}: {e.response.text}")
            raise PaymentGatewayError(f"Payment gateway returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"[PAYSTACK] {method} {path} failed: {e}")
            raise PaymentGatewayError("Payment gateway unreachable") from e
        except ValueError as e:
            raise PaymentGatewayError("Malformed payment gateway response") from e

        if not isinstance(body, dict) or not body.get("status") or not isinstance(body.get("data"), dict):
            message = body.get("message") if isinstance(body, dict) else None
            raise PaymentGatewayError(message or "Payment gateway rejected the request")
        return body["data"]

    async def initialize(
        self,
        email: str,
        amount: Decimal,
        currency: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PaymentSession:
        payload: Dict[str, Any] = {
            "email": email,
            "amount": to_minor_units(amount),
            "currency": currency,
            "metadata": metadata or {},
        }
        if self.callback_url:
            payload["callback_url"] = self.callback_url

        data = await self._request("POST", "/transaction/initialize", json=payload)

        try:
            session = PaymentSession(
                authorization_url=data["authorization_url"],
                reference=data["reference"],
                access_code=data.get("access_code"),
            )
        except KeyError as e:
            raise PaymentGatewayError(f"Payment gateway response missing {e}") from e

        logger.info(f"[PAYSTACK] Initialized charge {session.reference} for {amount} {currency}")
        return session

    async def verify(self, reference: str) -> ChargeVerification:
        data = await self._request("GET", f"/transaction/verify/{reference}")

        try:
            metadata = data.get("metadata")
            customer = data.get("customer") or {}
            return ChargeVerification(
                reference=data.get("reference") or reference,
                status=str(data["status"]),
                amount=from_minor_units(data["amount"]),
                currency=data.get("currency"),
                customer_email=customer.get("email") if isinstance(customer, dict) else None,
                metadata=metadata if isinstance(metadata, dict) else {},
            )
        except (KeyError, ArithmeticError) as e:
            raise PaymentGatewayError(f"Malformed verification response: {e}") from e

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        if not signature or not self.secret_key:
            return False
        expected = hmac.new(self.secret_key.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)
