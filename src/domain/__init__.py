from .base import BaseModel, generate_uuid
from .network import Network
from .account import Account
from .wallet_transaction import WalletTransaction, TransactionType, TransactionStatus
from .data_order import DataOrder, OrderStatus, generate_order_reference
from .bundle_catalog import (
    BUNDLE_CATALOG,
    AFA_REGISTRATION_PRICE,
    PRICE_TOLERANCE,
    BundleValidation,
    validate_bundle,
)
from .errors import ErrorCode
from .settlement_event import SettlementEvent, SettlementEventType, EventSeverity

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Network",
    "Account",
    "WalletTransaction",
    "TransactionType",
    "TransactionStatus",
    "DataOrder",
    "OrderStatus",
    "generate_order_reference",
    "BUNDLE_CATALOG",
    "AFA_REGISTRATION_PRICE",
    "PRICE_TOLERANCE",
    "BundleValidation",
    "validate_bundle",
    "ErrorCode",
    "SettlementEvent",
    "SettlementEventType",
    "EventSeverity",
]
