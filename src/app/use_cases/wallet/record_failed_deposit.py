"""RecordFailedDeposit Use Case

Marks a pending deposit failed after the gateway reports a failed charge.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.event_publisher import SettlementEventPublisher
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import TransactionStatus

logger = logging.getLogger(__name__)


class RecordFailedDeposit:
    """
    Use Case: Record a failed charge

    Uses the same compare-and-set as ConfirmDeposit, so a failure report
    can never overwrite a deposit that was already completed. Returns True
    when this call made the change, False when the deposit was already settled.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger: LedgerStore,
        publisher: SettlementEventPublisher,
    ):
        self.uow = uow
        self.ledger = ledger
        self.publisher = publisher

    async def execute(self, reference: str, reason: str = "charge failed") -> Result[bool]:
        try:
            failed = await self.ledger.finalize_transaction(
                reference,
                TransactionStatus.PENDING,
                TransactionStatus.FAILED,
                {"failure_reason": reason[:255], "completed_at": datetime.utcnow()},
            )
            if failed.is_err():
                await self.uow.rollback()
                if failed.error.code == ErrorCode.ALREADY_PROCESSED:
                    logger.info(f"[WEBHOOK] Failure report ignored, {reference} already settled")
                    return Return.ok(False)
                return Return.err(failed.error)

            await self.uow.commit()

            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.DEPOSIT_FAILED,
                    reference=reference,
                    account_id=failed.value.account_id,
                    severity=EventSeverity.WARNING,
                    message=reason,
                )
            )
            return Return.ok(True)

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[WEBHOOK] Failed to record failed deposit {reference}")
            return Return.err(
                Error(
                    code="RECORD_FAILED_DEPOSIT_FAILED",
                    message="Failed to record payment failure",
                    reason=str(e),
                )
            )
