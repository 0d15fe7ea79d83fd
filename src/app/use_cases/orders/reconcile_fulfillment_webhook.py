"""ReconcileFulfillmentWebhook Use Case

Applies an asynchronous status report from the fulfillment provider to an
order, refunding when the provider reports a failure after the fact.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.services.fulfillment_provider import FulfillmentProvider
from src.app.repositories.data_order_repository import DataOrderRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.data_order import OrderStatus
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import TransactionStatus
from .compensation import OrderCompensation
from .dtos import FulfillmentWebhookCommandDTO, FulfillmentWebhookResultDTO

logger = logging.getLogger(__name__)

PROVIDER_STATUS_MAP: dict[str, OrderStatus] = {
    "success": OrderStatus.COMPLETED,
    "successful": OrderStatus.COMPLETED,
    "completed": OrderStatus.COMPLETED,
    "delivered": OrderStatus.COMPLETED,
    "failed": OrderStatus.FAILED,
    "failure": OrderStatus.FAILED,
    "error": OrderStatus.FAILED,
    "reversed": OrderStatus.FAILED,
    "processing": OrderStatus.PROCESSING,
    "pending": OrderStatus.PROCESSING,
}


def map_provider_status(status: str) -> Optional[OrderStatus]:
    return PROVIDER_STATUS_MAP.get((status or "").strip().lower())


class ReconcileFulfillmentWebhook:
    """
    Use Case: Reconcile a fulfillment webhook

    Business Rules:
    1. Invalid callback token -> SIGNATURE_INVALID, nothing is read
    2. Unknown reference -> ORDER_NOT_FOUND (no retry storm)
    3. failed -> order failed, refunded unless a refund already exists; an
       order that is already failed keeps its record
    4. success -> order completed, except a failed (already refunded) order
       is never resurrected
    5. processing -> only applied to orders that are not yet terminal
    6. Unrecognized statuses are acknowledged without changes
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger: LedgerStore,
        order_repo: DataOrderRepository,
        transaction_repo: WalletTransactionRepository,
        provider: FulfillmentProvider,
        publisher: SettlementEventPublisher,
    ):
        self.uow = uow
        self.ledger = ledger
        self.order_repo = order_repo
        self.transaction_repo = transaction_repo
        self.provider = provider
        self.publisher = publisher
        self.compensation = OrderCompensation(ledger, transaction_repo)

    async def execute(self, command: FulfillmentWebhookCommandDTO) -> Result[FulfillmentWebhookResultDTO]:
        if not self.provider.verify_callback(command.token):
            logger.error(f"[FULFILLMENT WEBHOOK] Invalid callback token for {command.reference}")
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.SIGNATURE_INVALID,
                    reference=command.reference,
                    severity=EventSeverity.CRITICAL,
                    message="Fulfillment webhook token verification failed",
                    data={"token_present": command.token is not None},
                )
            )
            return Return.err(
                Error(
                    code=ErrorCode.SIGNATURE_INVALID,
                    message="Invalid signature",
                )
            )

        try:
            order = await self.order_repo.get_by_reference(command.reference)
            if not order:
                logger.warning(f"[FULFILLMENT WEBHOOK] Unknown order reference {command.reference}")
                return Return.err(
                    Error(
                        code=ErrorCode.ORDER_NOT_FOUND,
                        message="Order not found",
                        reason=f"reference={command.reference}",
                    )
                )

            previous_status = order.status
            target = map_provider_status(command.status)
            refunded = False
            applied = True

            if target is None:
                logger.info(
                    f"[FULFILLMENT WEBHOOK] Unrecognized status '{command.status}' for {order.reference}, ignoring"
                )
                applied = False

            elif target == OrderStatus.FAILED:
                reason = (command.message or "Transaction failed")[:255]
                refund = await self.compensation.refund(order, reason)
                if refund.is_err():
                    await self.uow.rollback()
                    return Return.err(refund.error)
                refunded = refund.value is not None
                if previous_status == OrderStatus.FAILED:
                    applied = False
                else:
                    order.status = OrderStatus.FAILED
                    order.failure_reason = reason

            elif target == OrderStatus.COMPLETED:
                if previous_status == OrderStatus.FAILED:
                    logger.warning(
                        f"[FULFILLMENT WEBHOOK] Provider reported success for failed order "
                        f"{order.reference}; keeping failed status"
                    )
                    applied = False
                else:
                    now = datetime.utcnow()
                    order.status = OrderStatus.COMPLETED
                    order.completed_at = order.completed_at or now
                    await self.ledger.finalize_transaction(
                        order.reference,
                        TransactionStatus.PENDING,
                        TransactionStatus.COMPLETED,
                        {"completed_at": now},
                    )

            else:
                if previous_status in (OrderStatus.PENDING, OrderStatus.PROCESSING):
                    order.status = OrderStatus.PROCESSING
                else:
                    applied = False

            if applied:
                order.updated_at = datetime.utcnow()
                order = await self.order_repo.update(order)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[FULFILLMENT WEBHOOK] Failed to process webhook for {command.reference}")
            return Return.err(
                Error(
                    code="FULFILLMENT_WEBHOOK_FAILED",
                    message="Failed to process webhook",
                    reason=str(e),
                )
            )

        logger.info(
            f"[FULFILLMENT WEBHOOK] {order.reference}: {previous_status.value} -> {order.status.value}"
            f" (refunded={refunded})"
        )
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.ORDER_WEBHOOK_APPLIED,
                reference=order.reference,
                account_id=order.account_id,
                severity=EventSeverity.WARNING if refunded else EventSeverity.INFO,
                message=command.message,
                data={
                    "previous_status": previous_status.value,
                    "status": order.status.value,
                    "provider_status": command.status,
                    "applied": applied,
                },
            )
        )
        if refunded:
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.ORDER_REFUNDED,
                    reference=order.reference,
                    account_id=order.account_id,
                    amount=order.price,
                )
            )

        return Return.ok(
            FulfillmentWebhookResultDTO(
                reference=order.reference,
                previous_status=previous_status.value,
                status=order.status.value,
                refunded=refunded,
                applied=applied,
            )
        )
