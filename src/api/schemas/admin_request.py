"""Request and response schemas for the operator API"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class OrderStatusOverrideRequestSchema(BaseModel):
    """
    Request schema for PUT /admin/orders/{reference}

    Marking an order failed refunds the wallet; a failed order cannot be
    moved to another status.
    """

    status: str = Field(
        ...,
        min_length=1,
        description="pending, processing, completed or failed"
    )

    reason: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Recorded as the failure reason when status is failed"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "status": "failed",
                "reason": "Bundle never delivered"
            }
        }


class OrderStatusOverrideResponseSchema(BaseModel):
    success: bool = True
    reference: str
    previous_status: str
    status: str
    refunded: bool = False


class ManualCreditRequestSchema(BaseModel):
    amount: Decimal = Field(
        ...,
        description="Amount to credit in GHS"
    )

    description: Optional[str] = Field(
        default=None,
        max_length=255,
    )

    reference: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Reuse to make retries safe"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "20.00",
                "description": "Compensation for outage"
            }
        }


class ManualCreditResponseSchema(BaseModel):
    success: bool = True
    message: str
    reference: str
    amount: Decimal
    balance: Decimal
