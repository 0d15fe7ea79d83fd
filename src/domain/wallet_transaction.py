"""Wallet Transaction Domain Entity

Audit record of every balance change (deposit, purchase, refund).
A record is created pending and finalized exactly once.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class TransactionType(str, Enum):
    """Wallet transaction types"""
    DEPOSIT = "deposit"      # Wallet funded through the payment gateway
    PURCHASE = "purchase"    # Wallet debited for a data order
    REFUND = "refund"        # Compensation for a failed data order


class TransactionStatus(str, Enum):
    """Wallet transaction lifecycle"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class WalletTransaction(BaseModel, table=True):
    """
    Wallet Transaction - Audit trail of wallet balance changes

    Domain Rules:
    - reference is unique (one record per gateway payment or order)
    - pending -> completed | failed happens exactly once (conditional update)
    - Terminal records are never mutated again
    - status alone serializes settlement: the conditional update on status
      picks one winner among concurrent callers
    - processing is a hold flag; finalize skips a held record. No settlement
      path sets it, so it stays false unless an operator holds the record
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index('ix_wallet_transactions_account_created', 'account_id', 'created_at'),
        Index('ix_wallet_transactions_status', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(64), primary_key=True),
        description="Transaction identifier"
    )

    account_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True),
        description="Owning account"
    )

    transaction_type: TransactionType = Field(
        description="Type of transaction (deposit, purchase, refund)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Positive amount (precision: 12,2)"
    )

    currency: str = Field(
        default="GHS",
        sa_column=Column(String(3), nullable=False, default="GHS"),
        description="Currency code (ISO 4217)"
    )

    reference: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
        description="Gateway payment reference or internal correlation key"
    )

    status: TransactionStatus = Field(
        default=TransactionStatus.PENDING,
        description="Lifecycle status (pending, completed, failed)"
    )

    processing: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Operator hold; finalize skips held records"
    )

    balance_before: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(12, 2), nullable=True),
        description="Balance before the wallet mutation"
    )

    balance_after: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(12, 2), nullable=True),
        description="Balance after the wallet mutation"
    )

    description: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
        description="Human-readable description"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Why the transaction failed"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON metadata for audit"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Creation timestamp"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the record reached a terminal status"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "b1e5c2",
                "account_id": "65f1c0d2a4b1",
                "transaction_type": "deposit",
                "amount": "50.00",
                "currency": "GHS",
                "reference": "T123456789",
                "status": "completed",
                "balance_before": "44.00",
                "balance_after": "94.00",
                "description": "Wallet funding via Paystack",
                "created_at": "2024-01-01T00:00:00Z",
                "completed_at": "2024-01-01T00:01:00Z"
            }
        }
