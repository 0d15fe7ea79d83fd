"""Request and response schemas for Wallet API

Request fields accept both snake_case and the camelCase names used by the
web client (accountId, ...).
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class AddFundsRequestSchema(BaseModel):
    """
    Request schema for funding a wallet

    Used for POST /wallet/add-funds endpoint. Range and precision checks
    happen in InitiateDeposit so the client gets the business message.
    """

    account_id: str = Field(
        ...,
        min_length=1,
        alias="accountId",
        description="Account identifier (required, non-empty)"
    )

    amount: Decimal = Field(
        ...,
        description="Amount to deposit in GHS"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "accountId": "65f1c0d2a4b1",
                "amount": "50.00"
            }
        }


class AddFundsResponseSchema(BaseModel):
    success: bool = True
    authorization_url: str
    reference: str
    amount: Decimal
    currency: str


class VerifyPaymentResponseSchema(BaseModel):
    success: bool = True
    message: str
    reference: str
    amount: Decimal
    balance: Optional[Decimal] = None
    already_processed: bool = False
