"""Request and response schemas for Orders API"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class PlaceOrderRequestSchema(BaseModel):
    """
    Request schema for placing a data bundle order

    Used for POST /orders endpoint.
    """

    account_id: str = Field(
        ...,
        min_length=1,
        alias="accountId",
        description="Paying account"
    )

    phone_number: str = Field(
        ...,
        min_length=9,
        max_length=15,
        pattern=r"^\+?[0-9]+$",
        alias="phoneNumber",
        description="Recipient phone number"
    )

    network: str = Field(
        ...,
        min_length=1,
        description="Carrier: mtn, at (airteltigo), telecel or afa-registration"
    )

    data_amount_mb: int = Field(
        ...,
        ge=0,
        alias="dataAmountMB",
        description="Bundle volume in MB (0 for AFA registration)"
    )

    price: Decimal = Field(
        ...,
        description="Price shown to the client; checked against the catalog"
    )

    reference: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Client-generated order reference (optional)"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "accountId": "65f1c0d2a4b1",
                "phoneNumber": "0241234567",
                "network": "mtn",
                "dataAmountMB": 1000,
                "price": "6.00",
                "reference": "ORD-1700000000-ab12cd34"
            }
        }


class PlaceOrderResponseSchema(BaseModel):
    success: bool = True
    message: str
    order_id: str
    reference: str
    status: str
    balance: Optional[Decimal] = None


class FulfillmentWebhookRequestSchema(BaseModel):
    """Status callback from the fulfillment provider"""

    reference: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    message: Optional[str] = None
