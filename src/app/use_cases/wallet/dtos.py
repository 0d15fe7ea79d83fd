"""Data Transfer Objects for Wallet Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class InitiateDepositCommandDTO(BaseModel):
    """
    Command DTO for starting a wallet deposit

    Used as input to InitiateDeposit use case.
    """

    account_id: str = Field(
        ...,
        description="Account to fund"
    )

    amount: Decimal = Field(
        ...,
        description="Deposit amount in major currency units"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "account_id": "65f1c0d2a4b1",
                "amount": "50.00"
            }
        }


class DepositInitResponseDTO(BaseModel):
    """Returned by InitiateDeposit"""

    authorization_url: str = Field(
        ...,
        description="Gateway checkout URL to redirect the user to"
    )

    reference: str = Field(
        ...,
        description="Gateway payment reference"
    )

    amount: Decimal = Field(
        ...,
        description="Validated deposit amount"
    )

    currency: str = Field(
        ...,
        description="Currency code"
    )


class ConfirmDepositResponseDTO(BaseModel):
    """
    Returned by ConfirmDeposit

    already_processed is True when this call found the deposit settled by
    an earlier (or concurrent) call and did not credit the wallet again.
    """

    reference: str
    status: str
    amount: Decimal
    balance: Optional[Decimal] = None
    already_processed: bool = False


class PaymentWebhookAckDTO(BaseModel):
    """Returned by HandlePaymentWebhook"""

    event: str
    reference: Optional[str] = None
    message: str


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for get balance operation

    Returned by GetBalance use case.
    """

    account_id: str = Field(
        ...,
        description="Account identifier"
    )

    balance: Decimal = Field(
        ...,
        description="Current wallet balance"
    )

    currency: str = Field(
        ...,
        description="Currency code"
    )

    last_updated: datetime = Field(
        ...,
        description="Timestamp of last balance update"
    )


class TransactionDTO(BaseModel):
    """Single wallet transaction in a history listing"""

    id: str
    transaction_type: str
    amount: Decimal
    currency: str
    reference: str
    status: str
    balance_before: Optional[Decimal] = None
    balance_after: Optional[Decimal] = None
    description: str
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class ListTransactionsResponseDTO(BaseModel):
    """Paginated wallet transaction history"""

    transactions: List[TransactionDTO]
    total: int
    limit: int
    offset: int


class ManualCreditCommandDTO(BaseModel):
    """
    Command DTO for an operator crediting a wallet directly

    Used as input to CreditWallet use case. A retried request that reuses
    reference is rejected instead of crediting twice.
    """

    account_id: str = Field(
        ...,
        description="Account to credit"
    )

    amount: Decimal = Field(
        ...,
        description="Amount in major currency units"
    )

    description: Optional[str] = Field(
        default=None,
        description="Shown in the transaction history"
    )

    reference: Optional[str] = Field(
        default=None,
        description="Idempotency reference (generated when omitted)"
    )

    operator: str = Field(
        default="operator",
        description="Who made the credit"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "account_id": "65f1c0d2a4b1",
                "amount": "20.00",
                "description": "Compensation for outage",
                "operator": "ops@example.com"
            }
        }


class ManualCreditResponseDTO(BaseModel):
    """Returned by CreditWallet"""

    reference: str
    amount: Decimal
    balance: Decimal
