"""Fulfillment Provider Interface

Contract for the third-party API that delivers data bundles to a phone number.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from src.domain.network import Network


class FulfillmentProviderError(Exception):
    """
    Provider rejected the request, timed out, or returned a malformed body

    The message is stored as the order's failure_reason.
    """


class FulfillmentRequest(BaseModel):
    network: Network
    phone_number: str
    data_amount_mb: int
    reference: str


class FulfillmentReceipt(BaseModel):
    """Accepted submission"""
    transaction_id: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class FulfillmentProvider(ABC):

    @abstractmethod
    async def submit(self, request: FulfillmentRequest) -> FulfillmentReceipt:
        """
        Submit a bundle delivery

        Raises:
            FulfillmentProviderError: On non-2xx, timeout, network error or
                malformed response
        """
        pass

    @abstractmethod
    def verify_callback(self, token: Optional[str]) -> bool:
        """True when a status callback carries the shared callback token"""
        pass
