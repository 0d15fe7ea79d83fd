from .unit_of_work import UnitOfWork
from .ledger_store import LedgerStore
from .payment_gateway import PaymentGateway, PaymentGatewayError, PaymentSession, ChargeVerification
from .fulfillment_provider import (
    FulfillmentProvider,
    FulfillmentProviderError,
    FulfillmentRequest,
    FulfillmentReceipt,
)
from .event_publisher import SettlementEventPublisher

__all__ = [
    "UnitOfWork",
    "LedgerStore",
    "PaymentGateway",
    "PaymentGatewayError",
    "PaymentSession",
    "ChargeVerification",
    "FulfillmentProvider",
    "FulfillmentProviderError",
    "FulfillmentRequest",
    "FulfillmentReceipt",
    "SettlementEventPublisher",
]
