"""Account Domain Entity

Holds a user's spendable wallet balance. The identity itself (name, email,
credentials) is owned by the identity provider; this entity only mirrors
the fields settlement needs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class Account(BaseModel, table=True):
    """
    Account - Wallet balance per user

    Domain Rules:
    - wallet_balance is non-negative, two-decimal precision, currency-scoped
    - wallet_balance only changes through LedgerStore.debit / LedgerStore.credit
    - Never deleted by the settlement core
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint('wallet_balance >= 0', name='wallet_balance_non_negative'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(64), primary_key=True),
        description="Account identifier (issued by the identity provider)"
    )

    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Billing email sent to the payment gateway"
    )

    wallet_balance: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False, default=0),
        description="Spendable balance (must be >= 0, precision: 12,2)"
    )

    currency: str = Field(
        default="GHS",
        sa_column=Column(String(3), nullable=False, default="GHS"),
        description="Currency code (ISO 4217)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Account creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last balance update timestamp"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f1c0d2a4b1",
                "email": "ama@example.com",
                "wallet_balance": "94.00",
                "currency": "GHS",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
