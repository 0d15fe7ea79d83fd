"""Order Compensation

Reverses the wallet debit of a failed order. Shared by PlaceDataOrder
(synchronous provider failure) and ReconcileFulfillmentWebhook
(asynchronous failure report).
"""

import json
import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.app.services.ledger_store import LedgerStore
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.data_order import DataOrder
from src.domain.errors import ErrorCode
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus

logger = logging.getLogger(__name__)


def refund_reference(order_reference: str) -> str:
    return f"refund-{order_reference}"


class OrderCompensation:
    """
    Refund a failed order exactly once

    Rules:
    - No refund when a refund transaction already exists for the order
    - Insert the refund record pending first; its unique reference is the
      claim, so a concurrent loser never credits
    - Credit the canonical price the order was debited, then complete the
      refund record with balance snapshots
    - Move the pending purchase record to failed (completed purchases stay
      immutable; the refund record reverses them)

    Does not commit. The caller owns the unit of work.
    """

    def __init__(self, ledger: LedgerStore, transaction_repo: WalletTransactionRepository):
        self.ledger = ledger
        self.transaction_repo = transaction_repo

    async def refund(self, order: DataOrder, reason: str) -> Result[Optional[WalletTransaction]]:
        """
        Returns:
            Result with the refund transaction, or None when already refunded.
            DUPLICATE_REFERENCE means a concurrent caller claimed the refund
            first; roll back.
        """
        reference = refund_reference(order.reference)

        existing = await self.transaction_repo.get_by_reference(reference)
        if existing:
            logger.info(f"[REFUND] Order {order.reference} already refunded, skipping")
            return Return.ok(None)

        # The unique refund reference is the claim; credit only after holding it
        claimed = await self.ledger.record_transaction(
            WalletTransaction(
                account_id=order.account_id,
                transaction_type=TransactionType.REFUND,
                amount=order.price,
                reference=reference,
                status=TransactionStatus.PENDING,
                description=f"Refund for failed order {order.reference}",
                metadata_json=json.dumps(
                    {"order_id": order.id, "order_reference": order.reference, "reason": reason}
                ),
            )
        )
        if claimed.is_err():
            return Return.err(claimed.error)

        credited = await self.ledger.credit(order.account_id, order.price)
        if credited.is_err():
            return Return.err(credited.error)
        new_balance = credited.value

        now = datetime.utcnow()
        settled = await self.ledger.finalize_transaction(
            reference,
            TransactionStatus.PENDING,
            TransactionStatus.COMPLETED,
            {
                "balance_before": new_balance - order.price,
                "balance_after": new_balance,
                "completed_at": now,
            },
        )
        if settled.is_err():
            return Return.err(settled.error)

        purchase = await self.ledger.finalize_transaction(
            order.reference,
            TransactionStatus.PENDING,
            TransactionStatus.FAILED,
            {"failure_reason": reason[:255], "completed_at": now},
        )
        if purchase.is_err() and purchase.error.code != ErrorCode.ALREADY_PROCESSED:
            logger.warning(
                f"[REFUND] Purchase record for {order.reference} not updated: {purchase.error.message}"
            )

        logger.info(
            f"[REFUND] Refunded {order.price} to account {order.account_id} "
            f"for order {order.reference}, balance_after={new_balance}"
        )
        return Return.ok(settled.value)
