"""Data order use cases"""
from .place_order import PlaceDataOrder
from .override_order_status import OverrideOrderStatus
from .reconcile_fulfillment_webhook import ReconcileFulfillmentWebhook, map_provider_status
from .compensation import OrderCompensation, refund_reference
from .get_order import GetOrder
from .list_orders import ListOrders
from .dtos import (
    PlaceOrderCommandDTO,
    PlaceOrderResponseDTO,
    OrderDTO,
    ListOrdersResponseDTO,
    FulfillmentWebhookCommandDTO,
    FulfillmentWebhookResultDTO,
    OverrideOrderStatusCommandDTO,
    OverrideOrderStatusResultDTO,
)

__all__ = [
    "PlaceDataOrder",
    "ReconcileFulfillmentWebhook",
    "OverrideOrderStatus",
    "map_provider_status",
    "OrderCompensation",
    "refund_reference",
    "GetOrder",
    "ListOrders",
    "PlaceOrderCommandDTO",
    "PlaceOrderResponseDTO",
    "OrderDTO",
    "ListOrdersResponseDTO",
    "FulfillmentWebhookCommandDTO",
    "FulfillmentWebhookResultDTO",
    "OverrideOrderStatusCommandDTO",
    "OverrideOrderStatusResultDTO",
]
