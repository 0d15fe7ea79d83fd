"""Data Order Domain Entity

A request to deliver a data bundle (or an AFA registration) to a phone number.
"""

import time
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Integer, Numeric, String
from src.domain.base import BaseModel, generate_uuid
from src.domain.network import Network


class OrderStatus(str, Enum):
    """Data order lifecycle"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DataOrder(BaseModel, table=True):
    """
    Data Order - Bundle delivery request

    Domain Rules:
    - reference is globally unique; a duplicate is rejected, never overwritten
    - price equals the catalog price for (network, data_amount_mb)
    - Created pending after the wallet debit, processing while the provider
      is called, then completed or failed
    - failed always comes with a refund transaction
    """

    __tablename__ = "data_orders"
    __table_args__ = (
        Index('ix_data_orders_account_created', 'account_id', 'created_at'),
        Index('ix_data_orders_status', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(64), primary_key=True),
        description="Order identifier"
    )

    account_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True),
        description="Account that paid for the order"
    )

    network: Network = Field(
        description="Carrier (mtn, at, telecel, afa-registration)"
    )

    data_amount_mb: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Bundle volume in MB (0 for registrations)"
    )

    price: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Canonical price debited from the wallet"
    )

    phone_number: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="Recipient phone number"
    )

    reference: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
        description="Unique order reference"
    )

    status: OrderStatus = Field(
        default=OrderStatus.PENDING,
        description="Lifecycle status (pending, processing, completed, failed)"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Human-readable failure cause"
    )

    provider_transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Fulfillment provider's transaction id"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Order creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last status change"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the order completed"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "c7a9e1",
                "account_id": "65f1c0d2a4b1",
                "network": "mtn",
                "data_amount_mb": 1000,
                "price": "6.00",
                "phone_number": "0241234567",
                "reference": "ORD-1700000000-ab12",
                "status": "completed",
                "provider_transaction_id": "HN-998877",
                "created_at": "2024-01-01T00:00:00Z",
                "completed_at": "2024-01-01T00:00:05Z"
            }
        }


def generate_order_reference() -> str:
    """Engine-side reference for callers that do not supply one"""
    return f"ORD-{int(time.time())}-{uuid.uuid4().hex[:8]}"
