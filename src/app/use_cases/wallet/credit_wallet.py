"""CreditWallet Use Case

Operator credit of a wallet outside the payment gateway. The credit is
recorded as a completed deposit so it shows in the transaction history.
"""

import json
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.repositories.account_repository import AccountRepository
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus
from .initiate_deposit import CENT, DEPOSIT_MAX_AMOUNT, validate_deposit_amount
from .dtos import ManualCreditCommandDTO, ManualCreditResponseDTO

logger = logging.getLogger(__name__)


def manual_credit_reference() -> str:
    return f"admin-deposit-{uuid.uuid4().hex[:12]}"


class CreditWallet:
    """
    Use Case: Operator wallet credit

    Business Rules:
    1. Amount is positive, at most the deposit maximum, 2 decimal places
    2. Account must exist
    3. The deposit record is claimed pending before the balance moves; a
       reused reference is DUPLICATE_REFERENCE and credits nothing
    4. The record completes with balance snapshots in the same unit of work
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: AccountRepository,
        ledger: LedgerStore,
        publisher: SettlementEventPublisher,
        currency: str = "GHS",
        max_amount: Decimal = DEPOSIT_MAX_AMOUNT,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.ledger = ledger
        self.publisher = publisher
        self.currency = currency
        self.max_amount = max_amount

    async def execute(self, command: ManualCreditCommandDTO) -> Result[ManualCreditResponseDTO]:
        amount_error = validate_deposit_amount(command.amount, CENT, self.max_amount)
        if amount_error:
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message=amount_error,
                    reason=f"amount={command.amount}",
                )
            )
        amount = command.amount.quantize(CENT)
        reference = command.reference or manual_credit_reference()

        try:
            account = await self.account_repo.get_by_id(command.account_id)
            if not account:
                return Return.err(
                    Error(
                        code=ErrorCode.ACCOUNT_NOT_FOUND,
                        message="Account not found",
                        reason=f"account_id={command.account_id}",
                    )
                )

            recorded = await self.ledger.record_transaction(
                WalletTransaction(
                    account_id=account.id,
                    transaction_type=TransactionType.DEPOSIT,
                    amount=amount,
                    currency=self.currency,
                    reference=reference,
                    status=TransactionStatus.PENDING,
                    description=command.description or "Wallet credited by operator",
                    metadata_json=json.dumps({"source": "operator", "operator": command.operator}),
                )
            )
            if recorded.is_err():
                await self.uow.rollback()
                return Return.err(recorded.error)

            credited = await self.ledger.credit(account.id, amount)
            if credited.is_err():
                await self.uow.rollback()
                return Return.err(credited.error)
            new_balance = credited.value

            settled = await self.ledger.finalize_transaction(
                reference,
                TransactionStatus.PENDING,
                TransactionStatus.COMPLETED,
                {
                    "balance_before": new_balance - amount,
                    "balance_after": new_balance,
                    "completed_at": datetime.utcnow(),
                },
            )
            if settled.is_err():
                await self.uow.rollback()
                return Return.err(settled.error)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[ADMIN CREDIT] Failed to credit account {command.account_id}")
            return Return.err(
                Error(
                    code="MANUAL_CREDIT_FAILED",
                    message="Failed to credit wallet",
                    reason=str(e),
                )
            )

        logger.warning(
            f"[ADMIN CREDIT] {command.operator} credited {amount} to account {account.id} "
            f"- reference={reference}, balance_after={new_balance}"
        )
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.MANUAL_CREDIT,
                reference=reference,
                account_id=account.id,
                amount=amount,
                severity=EventSeverity.WARNING,
                message=command.description,
                data={"operator": command.operator},
            )
        )

        return Return.ok(
            ManualCreditResponseDTO(reference=reference, amount=amount, balance=new_balance)
        )
