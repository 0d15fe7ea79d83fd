from .unit_of_work import SqlAlchemyUnitOfWork
from .paystack_gateway import PaystackPaymentGateway
from .hubnet_provider import HubnetFulfillmentProvider
from .event_publisher import (
    LoggingEventPublisher,
    WebhookEventPublisher,
    CompositeEventPublisher,
    create_event_publisher,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "PaystackPaymentGateway",
    "HubnetFulfillmentProvider",
    "LoggingEventPublisher",
    "WebhookEventPublisher",
    "CompositeEventPublisher",
    "create_event_publisher",
]
