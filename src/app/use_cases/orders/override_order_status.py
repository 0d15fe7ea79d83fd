"""OverrideOrderStatus Use Case

Operator correction of an order's status. Marking an order failed refunds
it through the same guarded compensation the provider paths use.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.repositories.data_order_repository import DataOrderRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.data_order import OrderStatus
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import TransactionStatus
from .compensation import OrderCompensation
from .dtos import OverrideOrderStatusCommandDTO, OverrideOrderStatusResultDTO

logger = logging.getLogger(__name__)


class OverrideOrderStatus:
    """
    Use Case: Operator order status override

    Business Rules:
    1. Target must be pending, processing, completed or failed
    2. A failed order is refunded and locked; it cannot be reopened
    3. -> failed refunds the order unless a refund already exists
    4. -> completed completes the pending purchase record
    5. Setting the current status again is a no-op
    6. The status change is compare-and-set against the status that was read;
       a concurrent change makes this call fail with ALREADY_PROCESSED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger: LedgerStore,
        order_repo: DataOrderRepository,
        transaction_repo: WalletTransactionRepository,
        publisher: SettlementEventPublisher,
    ):
        self.uow = uow
        self.ledger = ledger
        self.order_repo = order_repo
        self.publisher = publisher
        self.compensation = OrderCompensation(ledger, transaction_repo)

    async def execute(self, command: OverrideOrderStatusCommandDTO) -> Result[OverrideOrderStatusResultDTO]:
        try:
            target = OrderStatus((command.status or "").strip().lower())
        except ValueError:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_STATUS,
                    message="Invalid status value",
                    reason=f"status={command.status}",
                )
            )

        try:
            order = await self.order_repo.get_by_reference(command.reference)
            if not order:
                return Return.err(
                    Error(
                        code=ErrorCode.ORDER_NOT_FOUND,
                        message="Order not found",
                        reason=f"reference={command.reference}",
                    )
                )

            previous_status = order.status
            if target == previous_status:
                return Return.ok(
                    OverrideOrderStatusResultDTO(
                        reference=order.reference,
                        previous_status=previous_status.value,
                        status=previous_status.value,
                    )
                )

            if previous_status == OrderStatus.FAILED:
                return Return.err(
                    Error(
                        code=ErrorCode.ORDER_STATUS_LOCKED,
                        message="A failed order has been refunded and cannot be reopened",
                        reason=f"reference={order.reference}, requested={target.value}",
                    )
                )

            now = datetime.utcnow()
            values = {"updated_at": now}
            reason = None
            if target == OrderStatus.FAILED:
                reason = (command.reason or f"Marked failed by {command.operator}")[:255]
                values["failure_reason"] = reason
            elif target == OrderStatus.COMPLETED:
                values["completed_at"] = order.completed_at or now

            changed = await self.order_repo.transition(order.reference, previous_status, target, values)
            if changed is None:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.ALREADY_PROCESSED,
                        message="Order status changed concurrently, reload and retry",
                        reason=f"reference={order.reference}, expected={previous_status.value}",
                    )
                )

            refunded = False
            if target == OrderStatus.FAILED:
                refund = await self.compensation.refund(changed, reason)
                if refund.is_err():
                    await self.uow.rollback()
                    return Return.err(refund.error)
                refunded = refund.value is not None

            elif target == OrderStatus.COMPLETED:
                purchase = await self.ledger.finalize_transaction(
                    order.reference,
                    TransactionStatus.PENDING,
                    TransactionStatus.COMPLETED,
                    {"completed_at": now},
                )
                if purchase.is_err() and purchase.error.code != ErrorCode.ALREADY_PROCESSED:
                    logger.warning(
                        f"[ORDER ADMIN] Purchase record for {order.reference} not completed: "
                        f"{purchase.error.message}"
                    )

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[ORDER ADMIN] Failed to override status of {command.reference}")
            return Return.err(
                Error(
                    code="ORDER_OVERRIDE_FAILED",
                    message="Failed to update order",
                    reason=str(e),
                )
            )

        logger.warning(
            f"[ORDER ADMIN] {command.operator} set {changed.reference}: "
            f"{previous_status.value} -> {target.value} (refunded={refunded})"
        )
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.ORDER_STATUS_OVERRIDDEN,
                reference=changed.reference,
                account_id=changed.account_id,
                amount=changed.price,
                severity=EventSeverity.WARNING,
                message=reason,
                data={
                    "previous_status": previous_status.value,
                    "status": target.value,
                    "operator": command.operator,
                },
            )
        )
        if refunded:
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.ORDER_REFUNDED,
                    reference=changed.reference,
                    account_id=changed.account_id,
                    amount=changed.price,
                )
            )

        return Return.ok(
            OverrideOrderStatusResultDTO(
                reference=changed.reference,
                previous_status=previous_status.value,
                status=target.value,
                refunded=refunded,
            )
        )
