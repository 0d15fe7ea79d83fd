"""Payment Gateway Interface

Contract for the third-party card / mobile-money gateway used to fund wallets.
Amounts cross this boundary in major units (GHS); adapters convert to the
gateway's minor units.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class PaymentGatewayError(Exception):
    """Gateway unreachable, timed out, or returned an unusable response"""


class PaymentSession(BaseModel):
    """Charge session created by the gateway"""
    authorization_url: str
    reference: str
    access_code: Optional[str] = None


class ChargeVerification(BaseModel):
    """Authoritative charge state reported by the gateway"""
    reference: str
    status: str = Field(..., description="Gateway charge status (success, failed, abandoned, ongoing...)")
    amount: Decimal = Field(..., description="Charged amount in major units")
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == "success"

    @property
    def is_final_failure(self) -> bool:
        return self.status in ("failed", "abandoned", "reversed")


class PaymentGateway(ABC):

    @abstractmethod
    async def initialize(
        self,
        email: str,
        amount: Decimal,
        currency: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PaymentSession:
        """
        Create a charge session

        Raises:
            PaymentGatewayError: If the gateway rejects or cannot be reached
        """
        pass

    @abstractmethod
    async def verify(self, reference: str) -> ChargeVerification:
        """
        Fetch the authoritative status and amount of a charge

        Raises:
            PaymentGatewayError: If the gateway rejects or cannot be reached
        """
        pass

    @abstractmethod
    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """Check the webhook signature header against the raw request body"""
        pass
