"""Data Transfer Objects for Order Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class PlaceOrderCommandDTO(BaseModel):
    """
    Command DTO for buying a data bundle

    Used as input to PlaceDataOrder use case. price is the client's claim;
    it is checked against the catalog and never debited as-is.
    """

    account_id: str = Field(
        ...,
        description="Paying account"
    )

    phone_number: str = Field(
        ...,
        description="Recipient phone number"
    )

    network: str = Field(
        ...,
        description="Network name (mtn, at, telecel, afa-registration; aliases accepted)"
    )

    data_amount_mb: int = Field(
        ...,
        ge=0,
        description="Bundle volume in MB"
    )

    price: Decimal = Field(
        ...,
        description="Price the client displayed"
    )

    reference: Optional[str] = Field(
        default=None,
        description="Unique order reference (generated when omitted)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "account_id": "65f1c0d2a4b1",
                "phone_number": "0241234567",
                "network": "mtn",
                "data_amount_mb": 1000,
                "price": "6.00",
                "reference": "ORD-1700000000-ab12"
            }
        }


class OrderDTO(BaseModel):
    """Order as exposed to callers"""

    id: str
    account_id: str
    reference: str
    network: str
    data_amount_mb: int
    price: Decimal
    phone_number: str
    status: str
    failure_reason: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order) -> "OrderDTO":
        return cls(
            id=order.id,
            account_id=order.account_id,
            reference=order.reference,
            network=order.network.value,
            data_amount_mb=order.data_amount_mb,
            price=order.price,
            phone_number=order.phone_number,
            status=order.status.value,
            failure_reason=order.failure_reason,
            provider_transaction_id=order.provider_transaction_id,
            created_at=order.created_at,
            completed_at=order.completed_at,
        )


class PlaceOrderResponseDTO(BaseModel):
    """Returned by PlaceDataOrder on success"""

    order: OrderDTO
    balance: Optional[Decimal] = None


class ListOrdersResponseDTO(BaseModel):
    orders: List[OrderDTO]
    limit: int
    offset: int


class FulfillmentWebhookCommandDTO(BaseModel):
    """Callback payload from the fulfillment provider"""

    reference: str = Field(..., min_length=1)
    status: str
    message: Optional[str] = None
    token: Optional[str] = None


class FulfillmentWebhookResultDTO(BaseModel):
    reference: str
    previous_status: str
    status: str
    refunded: bool = False
    applied: bool = True


class OverrideOrderStatusCommandDTO(BaseModel):
    """
    Command DTO for an operator setting an order's status by hand

    Used as input to OverrideOrderStatus use case.
    """

    reference: str = Field(..., min_length=1)

    status: str = Field(
        ...,
        description="Target status (pending, processing, completed, failed)"
    )

    reason: Optional[str] = Field(
        default=None,
        description="Stored as failure_reason when the target is failed"
    )

    operator: str = Field(
        default="operator",
        description="Who made the change, recorded on the refund"
    )


class OverrideOrderStatusResultDTO(BaseModel):
    reference: str
    previous_status: str
    status: str
    refunded: bool = False
