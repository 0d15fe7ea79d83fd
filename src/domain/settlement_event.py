"""Settlement Event

Structured record emitted by the settlement engines for audit and alerting.
Not persisted by the core; publishers decide where events go.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class SettlementEventType(str, Enum):
    DEPOSIT_INITIATED = "deposit.initiated"
    DEPOSIT_COMPLETED = "deposit.completed"
    DEPOSIT_FAILED = "deposit.failed"
    DEPOSIT_ALREADY_PROCESSED = "deposit.already_processed"
    AMOUNT_MISMATCH = "deposit.amount_mismatch"
    SIGNATURE_INVALID = "webhook.signature_invalid"
    ORDER_DEBITED = "order.debited"
    ORDER_SUBMITTED = "order.submitted"
    ORDER_COMPLETED = "order.completed"
    ORDER_FAILED = "order.failed"
    ORDER_REFUNDED = "order.refunded"
    ORDER_WEBHOOK_APPLIED = "order.webhook_applied"
    ORDER_STATUS_OVERRIDDEN = "order.status_overridden"
    MANUAL_CREDIT = "wallet.manual_credit"


class EventSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"  # potential fraud signal


class SettlementEvent(BaseModel):
    event_type: SettlementEventType
    reference: str
    account_id: Optional[str] = None
    amount: Optional[Decimal] = None
    severity: EventSeverity = EventSeverity.INFO
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=datetime.utcnow)
